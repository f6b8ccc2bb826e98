"""
Hierarchy Consistency Engine

DESIGN DECISION: The vocabulary is enforced in small, pure steps:

1. NORMALIZE - any triple-like input becomes a HierarchyRow
2. DEDUPE - first occurrence of each triple wins
3. GUARANTEE DEFAULT - the default triple is always present
4. INDEX - one pass builds the allowed set and parent → children maps
5. CHECK - O(1) membership of a proposed triple
6. COERCE - unknown levels fall back to the default, level by level

WHY LEVEL BY LEVEL:
Each level is resolved against its *resolved* parent. This is not a
nearest-neighbour search over all triples; it is linear, deterministic
and cheap enough to run once per proposed record. A category that is
valid only under a different project is still replaced.

IMPORTANT: Nothing in this module raises on malformed input.
Labels coming from a language model are expected to be wrong sometimes.
"""

import math
import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, Optional

import structlog

from expense_taxonomy.models.hierarchy import (
    STANDARD_DEFAULTS,
    HierarchyDefaults,
    HierarchyLookup,
    HierarchyRow,
    PairKey,
    TripleKey,
)
from expense_taxonomy.taxonomy.errors import HierarchyInvariantError


logger = structlog.get_logger(__name__)

_FIELDS = ("project", "category", "sub_category")
_KEY_NOISE = re.compile(r"[\s_\-]")


def _squash(name: str) -> str:
    return _KEY_NOISE.sub("", name).lower()


_SQUASHED_FIELDS = frozenset(_squash(name) for name in _FIELDS)


def is_hierarchy_field(key: Any) -> bool:
    """True if `key` is any spelling of project, category or sub_category."""
    return isinstance(key, str) and _squash(key) in _SQUASHED_FIELDS


def _raw_field(row: Any, name: str) -> Any:
    """
    Read one field from a mapping or an object.

    Mappings are searched for the exact key first, then for a key that
    only differs in case or separators ("subCategory", "Sub-Category").
    """
    if row is None:
        return None

    if isinstance(row, Mapping):
        if name in row:
            return row[name]
        target = _squash(name)
        for key, value in row.items():
            if isinstance(key, str) and _squash(key) == target:
                return value
        return None

    return getattr(row, name, None)


def _label(value: Any) -> str:
    """Stringify a raw label; booleans and whole floats print like JSON scalars."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def _normalized_key(row: Any, defaults: HierarchyDefaults) -> TripleKey:
    return (
        _label(_raw_field(row, "project")) or defaults.project,
        _label(_raw_field(row, "category")) or defaults.category,
        _label(_raw_field(row, "sub_category")) or defaults.sub_category,
    )


def _row(key: TripleKey) -> HierarchyRow:
    project, category, sub_category = key
    return HierarchyRow(project=project, category=category, sub_category=sub_category)


def normalize_hierarchy_row(
    row: Any,
    defaults: Optional[HierarchyDefaults] = None,
) -> HierarchyRow:
    """
    Canonicalize a raw triple.

    Each field is coerced to a string and trimmed; an empty result is
    replaced by that level's default. Normalizing a normalized row is a
    no-op.

    Args:
        row: Mapping, object with attributes, HierarchyRow or None
        defaults: Fallback labels (standard defaults if None)

    Returns:
        A HierarchyRow; never raises
    """
    return _row(_normalized_key(row, defaults or STANDARD_DEFAULTS))


def dedupe_hierarchy_rows(rows: Iterable[HierarchyRow]) -> list[HierarchyRow]:
    """Drop repeated triples, keeping each first occurrence in order."""
    out: list[HierarchyRow] = []
    seen: set[TripleKey] = set()
    for row in rows:
        if row.key in seen:
            continue
        seen.add(row.key)
        out.append(row)
    return out


def ensure_default_hierarchy(
    rows: Optional[Iterable[Any]],
    defaults: Optional[HierarchyDefaults] = None,
) -> list[HierarchyRow]:
    """
    Normalize and dedupe rows, then make sure the default triple is present.

    The default row is prepended when missing, so the result always
    contains it exactly once and contains no duplicates.
    """
    defaults = defaults or STANDARD_DEFAULTS
    normalized = [normalize_hierarchy_row(row, defaults) for row in (rows or ())]
    out = dedupe_hierarchy_rows(normalized)

    default_row = defaults.row
    if any(row.key == default_row.key for row in out):
        return out
    return [default_row, *out]


def build_hierarchy_lookup(
    rows: Iterable[Any],
    defaults: Optional[HierarchyDefaults] = None,
    *,
    strict: bool = False,
) -> HierarchyLookup:
    """
    Build the read-only lookup index in a single pass.

    Rows are normalized again on the way in, so raw rows are accepted,
    but callers are expected to pass the output of
    ensure_default_hierarchy().

    Args:
        rows: Finalized row set
        defaults: Fallback labels stored on the index
        strict: Raise HierarchyInvariantError if the default triple
                is missing from the rows

    Returns:
        HierarchyLookup snapshot
    """
    defaults = defaults or STANDARD_DEFAULTS

    allowed: set[TripleKey] = set()
    projects: dict[str, set[str]] = {}
    categories: dict[PairKey, set[str]] = {}

    for row in rows:
        key = _normalized_key(row, defaults)
        project, category, sub_category = key
        allowed.add(key)
        projects.setdefault(project, set()).add(category)
        categories.setdefault((project, category), set()).add(sub_category)

    # Values are already typed; skip re-validating thousands of labels
    lookup = HierarchyLookup.model_construct(
        allowed_triples=frozenset(allowed),
        projects=MappingProxyType({name: frozenset(cats) for name, cats in projects.items()}),
        categories=MappingProxyType({pair: frozenset(subs) for pair, subs in categories.items()}),
        defaults=defaults,
    )

    if strict and not lookup.has_default():
        logger.error(
            "hierarchy_default_missing",
            default=str(defaults.row),
            triples=lookup.size,
        )
        raise HierarchyInvariantError(
            f"Lookup built without default triple {defaults.row}; "
            "run ensure_default_hierarchy() first"
        )

    return lookup


def is_allowed_hierarchy_triple(
    triple: Any,
    lookup: HierarchyLookup,
    defaults: Optional[HierarchyDefaults] = None,
) -> bool:
    """True iff the normalized triple is an exact member of the index."""
    key = _normalized_key(triple, defaults or lookup.defaults)
    return key in lookup.allowed_triples


def coerce_hierarchy_triple(
    triple: Any,
    lookup: HierarchyLookup,
    defaults: Optional[HierarchyDefaults] = None,
) -> HierarchyRow:
    """
    Map an arbitrary triple onto the vocabulary.

    An exact member is returned unchanged. Otherwise:
    - project is kept if the index knows it, else default project
    - category is kept if the *resolved* project has it, else default category
    - sub-category is kept if the resolved (project, category) pair has it,
      else default sub-category

    The result is not guaranteed to be an exact member itself, e.g. when
    a known category only exists under the default project with other
    sub-categories.
    """
    defaults = defaults or lookup.defaults
    key = _normalized_key(triple, defaults)

    if key in lookup.allowed_triples:
        return _row(key)

    project, category, sub_category = key

    safe_project = project if project in lookup.projects else defaults.project
    safe_category = (
        category
        if category in lookup.projects.get(safe_project, ())
        else defaults.category
    )
    safe_sub = (
        sub_category
        if sub_category in lookup.categories.get((safe_project, safe_category), ())
        else defaults.sub_category
    )

    return _row((safe_project, safe_category, safe_sub))
