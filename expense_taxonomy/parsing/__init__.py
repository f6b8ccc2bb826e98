"""Parser-facing helpers package."""

from expense_taxonomy.parsing.llm_payload import (
    PayloadDecodeError,
    decode_expense_payload,
    render_hierarchy_hint,
    strip_code_fences,
)
from expense_taxonomy.parsing.local_parser import (
    extract_amount,
    local_parse_expense,
    normalize_text,
    pick_hierarchy,
    pick_member,
)

__all__ = [
    # LLM seams
    "PayloadDecodeError",
    "decode_expense_payload",
    "render_hierarchy_hint",
    "strip_code_fences",
    # Offline parser
    "extract_amount",
    "local_parse_expense",
    "normalize_text",
    "pick_hierarchy",
    "pick_member",
]
