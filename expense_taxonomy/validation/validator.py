"""
Two-Stage Candidate Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount present, numeric, finite and positive
- Fields the parser reported as missing
- Expense date present and parseable

STAGE 2 - TAXONOMY VALIDATION:
- Triple is an exact member of the vocabulary
- Expense date is not in the future

WHY TWO STAGES:
1. A record without an amount is not worth checking further
2. Better error messages (know exactly what kind of issue)
3. Stage 2 needs the hierarchy snapshot, stage 1 does not

IMPORTANT: Validation NEVER fixes anything.
An unknown triple is reported together with the triple the coercion
resolver would pick; applying it is the sanitizer's job.
"""

import math
from collections.abc import Mapping
from datetime import date, datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel

from expense_taxonomy.config import get_settings
from expense_taxonomy.models.expense import ValidationIssue, ValidationResult
from expense_taxonomy.models.hierarchy import HierarchyLookup
from expense_taxonomy.taxonomy.hierarchy import (
    coerce_hierarchy_triple,
    is_allowed_hierarchy_triple,
    normalize_hierarchy_row,
)


def _as_record(expense: Any) -> dict[str, Any]:
    if isinstance(expense, Mapping):
        return dict(expense)
    if isinstance(expense, BaseModel):
        return expense.model_dump()
    return {}


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


class ExpenseValidator:
    """
    Validates a parsed expense before it is shown for confirmation.

    Stage 1: Schema validation (no hierarchy needed)
    Stage 2: Taxonomy validation (skipped without a lookup)
    """

    def __init__(
        self,
        lookup: Optional[HierarchyLookup] = None,
    ):
        """
        Initialize validator.

        Args:
            lookup: Hierarchy snapshot for membership checks.
                    If None, the membership check is skipped.
        """
        self._lookup = lookup
        self._settings = get_settings().parser

    def _validate_schema(
        self,
        record: dict[str, Any],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        amount = record.get("amount")
        if amount is None or amount == "":
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required but was not extracted",
                severity="error",
                suggested_fix="Say or type how much was spent",
            ))
        else:
            try:
                value = float(amount)
            except (TypeError, ValueError):
                value = None
            if value is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message=f"Amount ({amount!r}) is not a number",
                    severity="error",
                    suggested_fix="Check if the amount was read correctly",
                ))
            elif not math.isfinite(value):
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message=f"Amount ({amount!r}) is not a finite number",
                    severity="error",
                    suggested_fix="Check if the amount was read correctly",
                ))
            elif value <= 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be greater than zero",
                    severity="error",
                    suggested_fix="Check if the amount was read correctly",
                ))

        for field in record.get("missing_info") or []:
            if field == "amount":
                continue
            issues.append(ValidationIssue(
                field=str(field),
                issue_type="missing",
                message=f"The parser could not determine {field}",
                severity="warning",
                suggested_fix=f"You'll need to enter {field} manually",
            ))

        raw_date = record.get("expense_date")
        if raw_date is None or raw_date == "":
            issues.append(ValidationIssue(
                field="expense_date",
                issue_type="missing",
                message="Expense date was not extracted",
                severity="warning",
                suggested_fix="You'll need to enter the date manually",
            ))
        else:
            try:
                _parse_date(raw_date)
            except ValueError:
                issues.append(ValidationIssue(
                    field="expense_date",
                    issue_type="invalid_format",
                    message=f"Expense date ({raw_date}) is not a valid date",
                    severity="warning",
                    suggested_fix="Use the YYYY-MM-DD format",
                ))

        # Schema is valid if no errors (warnings are okay)
        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_taxonomy(
        self,
        record: dict[str, Any],
        today: date,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Taxonomy validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if self._lookup is not None and not is_allowed_hierarchy_triple(record, self._lookup):
            proposed = normalize_hierarchy_row(record, self._lookup.defaults)
            resolved = coerce_hierarchy_triple(proposed, self._lookup)
            issues.append(ValidationIssue(
                field="hierarchy",
                issue_type="unknown_hierarchy",
                message=f"Category {proposed} is not in your category list",
                severity="warning",
                suggested_fix=f"It will be saved as {resolved}",
            ))

        try:
            expense_date = _parse_date(record.get("expense_date"))
        except ValueError:
            expense_date = None

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if expense_date and expense_date > max_future_date:
            issues.append(ValidationIssue(
                field="expense_date",
                issue_type="future_date",
                message=f"Expense date ({expense_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(
        self,
        expense: Any,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            expense: Parsed expense (mapping or ParsedExpense)
            today: Reference date for the future-date check

        Returns:
            ValidationResult with all issues found
        """
        record = _as_record(expense)
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(record)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        taxonomy_valid = False
        if schema_valid:
            taxonomy_valid, taxonomy_issues = self._validate_taxonomy(
                record, today or date.today()
            )
            all_issues.extend(taxonomy_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            schema_valid=schema_valid,
            taxonomy_valid=taxonomy_valid,
            is_valid=schema_valid and taxonomy_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed! Please review the details below."

        lines = []

        if not result.schema_valid:
            lines.append("❌ Some required information is missing:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        lines.append("")
        if result.is_valid:
            lines.append("You can still save, but please review carefully.")
        else:
            lines.append("Please fix the issues above before saving.")

        return "\n".join(lines)
