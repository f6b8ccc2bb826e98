"""Taxonomy consistency package."""

from expense_taxonomy.taxonomy.errors import HierarchyInvariantError, TaxonomyError
from expense_taxonomy.taxonomy.hierarchy import (
    build_hierarchy_lookup,
    coerce_hierarchy_triple,
    dedupe_hierarchy_rows,
    ensure_default_hierarchy,
    is_allowed_hierarchy_triple,
    is_hierarchy_field,
    normalize_hierarchy_row,
)
from expense_taxonomy.taxonomy.registry import HierarchyRegistry
from expense_taxonomy.taxonomy.sanitizer import (
    match_member,
    sanitize_expense,
    sanitize_expenses,
)

__all__ = [
    # Errors
    "HierarchyInvariantError",
    "TaxonomyError",
    # Engine
    "build_hierarchy_lookup",
    "coerce_hierarchy_triple",
    "dedupe_hierarchy_rows",
    "ensure_default_hierarchy",
    "is_allowed_hierarchy_triple",
    "is_hierarchy_field",
    "normalize_hierarchy_row",
    # Snapshot holder
    "HierarchyRegistry",
    # Record boundary
    "match_member",
    "sanitize_expense",
    "sanitize_expenses",
]
