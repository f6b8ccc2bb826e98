"""
Expense Record Models

These models describe the records that cross the taxonomy boundary:
1. Expenses proposed by a parser (LLM or offline)
2. The same expenses after their triple has been forced into the vocabulary
3. Validation results shown to the user before saving

CRITICAL: A ParsedExpense is PROPOSED data. Its triple may be invented
by the model and must go through the sanitizer before it is trusted.
"""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_taxonomy.config import get_settings
from expense_taxonomy.models.hierarchy import HierarchyRow


# =============================================================================
# PARSER OUTPUT
# =============================================================================

class ParsedExpense(BaseModel):
    """
    A single expense extracted from free text.

    Unknown keys coming from a model response are kept (extra="allow")
    so that they pass through the sanitizer untouched.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="allow")

    # Unset labels read the configured defaults
    project: str = Field(default_factory=lambda: get_settings().taxonomy.default_project)
    category: str = Field(default_factory=lambda: get_settings().taxonomy.default_category)
    sub_category: str = Field(
        default_factory=lambda: get_settings().taxonomy.default_sub_category
    )
    amount: float = Field(
        default=0.0,
        description="Amount spent"
    )
    expense_date: date = Field(
        default_factory=date.today,
        description="Date the money was spent"
    )
    description: str = Field(
        default="",
        description="Free-text description of the expense"
    )
    member_name: Optional[str] = Field(
        default=None,
        description="Household member mentioned in the text"
    )
    missing_info: list[str] = Field(
        default_factory=list,
        description="Fields the parser could not determine"
    )

    @property
    def triple(self) -> HierarchyRow:
        return HierarchyRow(
            project=self.project,
            category=self.category,
            sub_category=self.sub_category,
        )

    def to_record(self) -> dict[str, Any]:
        """Plain dict with ISO dates, as handed to the UI and storage layers."""
        return self.model_dump(mode="json")


class ParseResult(BaseModel):
    """Expenses parsed from one utterance plus the provider that parsed them."""

    expenses: list[ParsedExpense] = Field(default_factory=list)
    provider: str


# =============================================================================
# SANITIZER OUTPUT
# =============================================================================

class SanitizedExpense(BaseModel):
    """
    An expense whose triple has been checked against the vocabulary.

    `expense` is the original record with only the three taxonomy fields
    (and `member_id`, when a member matched) replaced.
    """

    expense: dict[str, Any]
    triple: HierarchyRow
    original: HierarchyRow
    was_coerced: bool
    member_id: Optional[Any] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_hierarchy')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (amount, date)
    Stage 2: Taxonomy validation (triple membership, date sanity)
    """

    schema_valid: bool
    taxonomy_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)

    # Warnings don't block but should be shown
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


class ExpenseReview(BaseModel):
    """
    One expense ready to be shown for confirmation.

    `validation` describes the record as the parser proposed it;
    `sanitized.expense` is what would be saved.
    """

    sanitized: SanitizedExpense
    validation: ValidationResult
