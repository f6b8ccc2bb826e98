"""
Candidate Sanitizer

The boundary between the AI parser and everything that displays or
stores an expense.

CRITICAL BOUNDARIES:
- Every externally proposed triple is normalized and coerced here
- Only the taxonomy fields (under any key spelling) and member_id are
  written; amount, date, description and any unknown keys pass through
  unchanged
- A record is never dropped, even if it is not a mapping at all
"""

from collections.abc import Iterable, Mapping
from typing import Any, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel

from expense_taxonomy.audit import AuditLogger
from expense_taxonomy.models.expense import SanitizedExpense
from expense_taxonomy.models.hierarchy import HierarchyLookup
from expense_taxonomy.taxonomy.hierarchy import (
    coerce_hierarchy_triple,
    is_hierarchy_field,
    normalize_hierarchy_row,
)


logger = structlog.get_logger(__name__)


def _member_attr(member: Any, name: str) -> Any:
    if isinstance(member, Mapping):
        return member.get(name)
    return getattr(member, name, None)


def _as_record(expense: Any) -> dict[str, Any]:
    if isinstance(expense, Mapping):
        return dict(expense)
    if isinstance(expense, BaseModel):
        return expense.model_dump(mode="json")
    return {}


def match_member(name: Any, members: Optional[Iterable[Any]]) -> Optional[Any]:
    """
    Find the household member a parsed name refers to.

    A member matches when its name equals the parsed name, contains it,
    or is contained in it. The first match in list order wins.
    """
    wanted = str(name).strip() if name is not None else ""
    if not wanted or not members:
        return None

    for member in members:
        candidate = _member_attr(member, "name")
        candidate = str(candidate).strip() if candidate is not None else ""
        if not candidate:
            continue
        if candidate == wanted or wanted in candidate or candidate in wanted:
            return member
    return None


def sanitize_expense(
    expense: Any,
    lookup: HierarchyLookup,
    members: Optional[Iterable[Any]] = None,
) -> SanitizedExpense:
    """
    Force one proposed expense onto the vocabulary.

    Args:
        expense: Record emitted by a parser (mapping or pydantic model)
        lookup: Current hierarchy snapshot
        members: Optional household members ({"id", "name"} items)

    Returns:
        SanitizedExpense with the resolved triple merged into the record
    """
    record = _as_record(expense)
    original = normalize_hierarchy_row(record, lookup.defaults)
    triple = coerce_hierarchy_triple(original, lookup)

    # Drop every spelling of the taxonomy keys so only the resolved labels remain
    out = {key: value for key, value in record.items() if not is_hierarchy_field(key)}
    out.update(triple.to_dict())

    member_id = None
    matched = match_member(record.get("member_name"), members)
    if matched is not None:
        member_id = _member_attr(matched, "id")
        out["member_id"] = member_id

    return SanitizedExpense(
        expense=out,
        triple=triple,
        original=original,
        was_coerced=triple.key != original.key,
        member_id=member_id,
    )


def sanitize_expenses(
    expenses: Iterable[Any],
    lookup: HierarchyLookup,
    members: Optional[Iterable[Any]] = None,
    audit_logger: Optional[AuditLogger] = None,
    correlation_id: Optional[UUID] = None,
) -> list[SanitizedExpense]:
    """Sanitize every expense parsed from one utterance."""
    members = list(members) if members else None
    results = [sanitize_expense(expense, lookup, members) for expense in expenses]

    coerced = 0
    for result in results:
        if result.was_coerced:
            coerced += 1
            if audit_logger:
                audit_logger.log_taxonomy_coerced(
                    original=str(result.original),
                    resolved=str(result.triple),
                    correlation_id=correlation_id,
                )
        elif audit_logger:
            audit_logger.log_candidate_accepted(
                triple=str(result.triple),
                correlation_id=correlation_id,
            )

    logger.debug(
        "expenses_sanitized",
        total=len(results),
        coerced=coerced,
        correlation_id=str(correlation_id) if correlation_id else None,
    )
    return results
