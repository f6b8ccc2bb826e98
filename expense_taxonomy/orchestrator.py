"""
Expense Intake Orchestrator

This module ties the components together into the flow every proposed
expense goes through:

    completion text / free text
        → decode (LLM) or parse (offline)
        → validate (as proposed)
        → sanitize (forced onto the vocabulary)
        → review item for the UI

DESIGN DECISION: The orchestrator enforces the boundaries:
- No proposed triple reaches the UI without passing the sanitizer
- Every flow reads ONE hierarchy snapshot from start to finish
- Every coercion is audited

The language-model call itself happens outside; this flow receives its
raw completion text.
"""

from datetime import date
from typing import Any, Iterable, Optional
from uuid import UUID

import structlog

from expense_taxonomy.audit import AuditLogger, create_correlation_id
from expense_taxonomy.models.expense import ExpenseReview
from expense_taxonomy.models.hierarchy import HierarchyLookup
from expense_taxonomy.parsing import (
    PayloadDecodeError,
    decode_expense_payload,
    local_parse_expense,
    render_hierarchy_hint,
)
from expense_taxonomy.taxonomy import HierarchyRegistry, sanitize_expenses
from expense_taxonomy.validation import ExpenseValidator


class ExpenseIntakeFlow:
    """
    Orchestrates the intake of parsed expenses.

    Flow:
    1. Snapshot → take the current hierarchy lookup once
    2. Decode / Parse → candidate records
    3. Validate → issues against the proposed record
    4. Sanitize → triple coerced, other fields untouched
    5. Review → returned to the caller for confirmation
    """

    def __init__(
        self,
        registry: HierarchyRegistry,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._registry = registry
        self._audit_logger = audit_logger
        self._logger = structlog.get_logger(__name__)

    def vocabulary_hint(self, max_items: Optional[int] = None) -> str:
        """Allowed triples for the language-model prompt."""
        return render_hierarchy_hint(
            self._registry.rows,
            max_items=max_items,
            defaults=self._registry.defaults,
        )

    def process_completion(
        self,
        raw: Optional[str],
        members: Optional[Iterable[Any]] = None,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[ExpenseReview]:
        """
        Turn a raw model completion into review items.

        Raises:
            PayloadDecodeError: If the completion is not JSON
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            candidates = decode_expense_payload(raw)
        except PayloadDecodeError as e:
            if self._audit_logger:
                self._audit_logger.log_payload_rejected(
                    error_message=e.message,
                    preview=e.preview,
                    correlation_id=correlation_id,
                )
            raise

        return self._review(candidates, members, today, correlation_id, self._registry.snapshot)

    def process_offline(
        self,
        text: Optional[str],
        members: Optional[Iterable[Any]] = None,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[ExpenseReview]:
        """Parse free text without a model and turn it into review items."""
        correlation_id = correlation_id or create_correlation_id()
        members = list(members) if members else None
        rows, lookup = self._registry.read()

        parsed = local_parse_expense(
            text,
            hierarchy=rows,
            members=members,
            today=today,
            defaults=self._registry.defaults,
        )
        candidates = [expense.to_record() for expense in parsed.expenses]

        return self._review(candidates, members, today, correlation_id, lookup)

    def _review(
        self,
        candidates: list[dict[str, Any]],
        members: Optional[Iterable[Any]],
        today: Optional[date],
        correlation_id: UUID,
        lookup: HierarchyLookup,
    ) -> list[ExpenseReview]:
        validator = ExpenseValidator(lookup)
        members = list(members) if members else None

        validations = [validator.validate(candidate, today=today) for candidate in candidates]
        sanitized = sanitize_expenses(
            candidates,
            lookup,
            members=members,
            audit_logger=self._audit_logger,
            correlation_id=correlation_id,
        )

        reviews = []
        for item, validation in zip(sanitized, validations):
            if validation.has_errors and self._audit_logger:
                self._audit_logger.log_validation_failed(
                    issues=[issue.model_dump() for issue in validation.issues],
                    correlation_id=correlation_id,
                )
            reviews.append(ExpenseReview(sanitized=item, validation=validation))

        self._logger.info(
            "expenses_reviewed",
            count=len(reviews),
            coerced=sum(1 for review in reviews if review.sanitized.was_coerced),
            correlation_id=str(correlation_id),
        )
        return reviews
