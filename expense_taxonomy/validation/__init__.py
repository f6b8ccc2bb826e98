"""Candidate validation package."""

from expense_taxonomy.validation.validator import ExpenseValidator

__all__ = ["ExpenseValidator"]
