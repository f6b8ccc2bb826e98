"""
LLM Payload Helpers

The two in-process seams with the language-model client:

1. OUTBOUND - render the allowed vocabulary as a compact hint the client
   can put in its prompt
2. INBOUND - decode the raw completion text into candidate expense dicts

The decoded candidates are still untrusted; they must go through the
sanitizer before they are shown or saved.
"""

import json
import re
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from expense_taxonomy.config import get_settings
from expense_taxonomy.models.hierarchy import HierarchyDefaults
from expense_taxonomy.taxonomy.errors import TaxonomyError
from expense_taxonomy.taxonomy.hierarchy import (
    dedupe_hierarchy_rows,
    normalize_hierarchy_row,
)


_FENCE = re.compile(r"```json\n?|\n?```", re.IGNORECASE)

HINT_SEPARATOR = "；"
HINT_ELLIPSIS = "；..."


class PayloadDecodeError(TaxonomyError):
    """Model response is not valid JSON."""

    def __init__(self, message: str, preview: str = ""):
        self.message = message
        self.preview = preview
        super().__init__(message)


def strip_code_fences(raw: str) -> str:
    """Remove Markdown ```json fences that models like to add."""
    return _FENCE.sub("", raw or "").strip()


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # Find JSON in response
        start = text.find("{")
        end = text.rfind("}") + 1
        if start >= 0 and end > start:
            return json.loads(text[start:end])
        raise


def decode_expense_payload(raw: Optional[str]) -> list[dict[str, Any]]:
    """
    Decode a completion into candidate expense records.

    Accepted shapes:
    - {"expenses": [...]} → the mapping items of the list
    - a single expense object with a truthy "amount"

    Anything else decodes to an empty list.

    Raises:
        PayloadDecodeError: If the text is not JSON at all
    """
    text = strip_code_fences(raw or "") or "{}"

    try:
        payload = _loads(text)
    except json.JSONDecodeError as e:
        preview = (raw or "")[:100]
        raise PayloadDecodeError(
            f"Could not decode model response as JSON: {e.msg}",
            preview=preview,
        ) from e

    if not isinstance(payload, dict):
        return []

    expenses = payload.get("expenses")
    if isinstance(expenses, list):
        return [dict(item) for item in expenses if isinstance(item, Mapping)]

    if payload.get("amount"):
        return [payload]

    return []


def render_hierarchy_hint(
    rows: Iterable[Any],
    max_items: Optional[int] = None,
    defaults: Optional[HierarchyDefaults] = None,
) -> str:
    """
    Render allowed triples as "project>category>sub_category" items.

    Items are joined with a full-width semicolon and clipped to
    `max_items`; a trailing "；..." marks a clipped list.
    """
    if max_items is None:
        max_items = get_settings().taxonomy.hint_max_items

    items = [
        str(row)
        for row in dedupe_hierarchy_rows(
            normalize_hierarchy_row(row, defaults) for row in rows
        )
    ]
    clipped = items[:max_items]
    suffix = HINT_ELLIPSIS if len(items) > len(clipped) else ""
    return HINT_SEPARATOR.join(clipped) + suffix
