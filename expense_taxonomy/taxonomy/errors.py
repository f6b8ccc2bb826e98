"""Exceptions raised by the taxonomy package."""


class TaxonomyError(Exception):
    """Base exception for taxonomy operations."""
    pass


class HierarchyInvariantError(TaxonomyError, AssertionError):
    """
    A lookup index was built from rows lacking the default triple.

    Only raised when the default-guarantee pass was skipped; this is a
    programming error, never a user-facing failure.
    """
    pass
