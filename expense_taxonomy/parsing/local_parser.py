"""
Offline Expense Parser

Keyword-based fallback used when no language model is reachable.
It only ever picks triples from the hierarchy it is given, but its output
still goes through the sanitizer like any other parser's.
"""

import re
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any, Optional

from expense_taxonomy.config import get_settings
from expense_taxonomy.models.expense import ParsedExpense, ParseResult
from expense_taxonomy.models.hierarchy import (
    STANDARD_DEFAULTS,
    HierarchyDefaults,
    HierarchyRow,
)


PROVIDER = "local"

_TEST_PREFIX = re.compile(r"^测试数据[:：\s]*", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_CURRENCY_AMOUNT = re.compile(r"(-?\d+(?:\.\d+)?)(?=\s*(?:元|块|¥|￥))")
_ANY_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")

# Score weights: the most specific label mentioned wins
_SUB_CATEGORY_WEIGHT = 3
_CATEGORY_WEIGHT = 2
_PROJECT_WEIGHT = 1


def _get(item: Any, name: str) -> str:
    value = item.get(name) if isinstance(item, Mapping) else getattr(item, name, None)
    return str(value or "").strip()


def normalize_text(text: Optional[str]) -> str:
    """Trim, drop a leading test-data marker and collapse whitespace."""
    s = str(text or "").strip()
    if not s:
        return ""
    s = _TEST_PREFIX.sub("", s)
    return _WHITESPACE.sub(" ", s).strip()


def extract_amount(text: str) -> Optional[float]:
    """
    Pick the amount out of a sentence.

    Prefers the last number followed by a currency marker (元, 块, ¥, ￥);
    otherwise the last number at all.
    """
    s = normalize_text(text)
    tagged = _CURRENCY_AMOUNT.findall(s)
    if tagged:
        return float(tagged[-1])
    numbers = _ANY_NUMBER.findall(s)
    if numbers:
        return float(numbers[-1])
    return None


def pick_hierarchy(
    text: str,
    hierarchy: Optional[Iterable[Any]],
    defaults: Optional[HierarchyDefaults] = None,
) -> HierarchyRow:
    """
    Choose the hierarchy row whose labels appear in the text.

    Rows without a project or category are ignored. Ties go to the
    earlier row. With no label mentioned at all, the row labelled with
    the default category and sub-category is used, else the first row.
    """
    defaults = defaults or STANDARD_DEFAULTS
    s = normalize_text(text)

    candidates = []
    for item in hierarchy or ():
        project = _get(item, "project")
        category = _get(item, "category")
        if project and category:
            candidates.append((project, category, _get(item, "sub_category")))

    if not candidates:
        return defaults.row

    def score(candidate: tuple[str, str, str]) -> int:
        project, category, sub_category = candidate
        total = 0
        if sub_category and sub_category in s:
            total += _SUB_CATEGORY_WEIGHT
        if category in s:
            total += _CATEGORY_WEIGHT
        if project in s:
            total += _PROJECT_WEIGHT
        return total

    best = candidates[0]
    best_score = -1
    for candidate in candidates:
        current = score(candidate)
        if current > best_score:
            best_score = current
            best = candidate

    if best_score <= 0:
        best = next(
            (
                c for c in candidates
                if c[1] == defaults.category and c[2] == defaults.sub_category
            ),
            candidates[0],
        )

    project, category, sub_category = best
    return HierarchyRow(
        project=project,
        category=category,
        sub_category=sub_category or defaults.sub_category,
    )


def pick_member(text: str, members: Optional[Iterable[Any]]) -> Optional[str]:
    """First member whose name occurs in the text."""
    s = normalize_text(text)
    for member in members or ():
        name = _get(member, "name")
        if name and name in s:
            return name
    return None


def local_parse_expense(
    text: Optional[str],
    hierarchy: Optional[Iterable[Any]] = None,
    members: Optional[Iterable[Any]] = None,
    today: Optional[date] = None,
    defaults: Optional[HierarchyDefaults] = None,
) -> ParseResult:
    """
    Parse one expense out of free text without a language model.

    Args:
        text: What the user typed or said
        hierarchy: Known rows to pick the triple from
        members: Household members ({"name"} items)
        today: Expense date (defaults to today)
        defaults: Fallback labels

    Returns:
        ParseResult with exactly one expense and provider "local"
    """
    normalized = normalize_text(text)

    amount = extract_amount(normalized)
    missing_info = []
    if amount is None:
        missing_info.append("amount")

    picked = pick_hierarchy(normalized, hierarchy, defaults)

    expense = ParsedExpense(
        project=picked.project,
        category=picked.category,
        sub_category=picked.sub_category,
        amount=amount if amount is not None else 0.0,
        expense_date=today or date.today(),
        description=normalized or get_settings().parser.fallback_description,
        member_name=pick_member(normalized, members),
        missing_info=missing_info,
    )

    return ParseResult(expenses=[expense], provider=PROVIDER)
