"""
Data Models Package

This package contains all Pydantic models used by the taxonomy engine.
All data crossing the taxonomy boundary must conform to these schemas.
"""

from expense_taxonomy.models.hierarchy import (
    DEFAULT_CATEGORY,
    DEFAULT_HIERARCHY_ROW,
    DEFAULT_PROJECT,
    DEFAULT_SUB_CATEGORY,
    STANDARD_DEFAULTS,
    HierarchyDefaults,
    HierarchyLookup,
    HierarchyRow,
)
from expense_taxonomy.models.expense import (
    ExpenseReview,
    ParsedExpense,
    ParseResult,
    SanitizedExpense,
    ValidationIssue,
    ValidationResult,
)
from expense_taxonomy.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Hierarchy models
    "DEFAULT_CATEGORY",
    "DEFAULT_HIERARCHY_ROW",
    "DEFAULT_PROJECT",
    "DEFAULT_SUB_CATEGORY",
    "STANDARD_DEFAULTS",
    "HierarchyDefaults",
    "HierarchyLookup",
    "HierarchyRow",
    # Expense models
    "ExpenseReview",
    "ParsedExpense",
    "ParseResult",
    "SanitizedExpense",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
