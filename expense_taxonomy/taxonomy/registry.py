"""
Hierarchy Registry

Holds the current HierarchyLookup snapshot for a process.

Readers grab `snapshot` once and use that object for the whole operation;
a rebuild builds a complete new index first and then replaces the
reference in one assignment. A reader that started before the swap keeps
working on the previous snapshot, which is an accepted, bounded staleness.
"""

import threading
from typing import Any, Iterable, Optional

import structlog

from expense_taxonomy.audit import AuditLogger
from expense_taxonomy.models.hierarchy import (
    HierarchyDefaults,
    HierarchyLookup,
    HierarchyRow,
)
from expense_taxonomy.taxonomy.errors import HierarchyInvariantError
from expense_taxonomy.taxonomy.hierarchy import (
    build_hierarchy_lookup,
    coerce_hierarchy_triple,
    ensure_default_hierarchy,
    is_allowed_hierarchy_triple,
)


class HierarchyRegistry:
    """
    Process-wide holder of the live lookup snapshot.

    - writers (rebuild) are serialized by a lock
    - readers never take the lock
    """

    def __init__(
        self,
        rows: Optional[Iterable[Any]] = None,
        defaults: Optional[HierarchyDefaults] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._defaults = defaults or HierarchyDefaults.from_settings()
        self._audit_logger = audit_logger
        self._logger = structlog.get_logger(__name__)
        self._lock = threading.Lock()
        self._version = 0
        # Rows and the index built from them are swapped as one pair
        self._state: tuple[tuple[HierarchyRow, ...], HierarchyLookup]
        self.rebuild(rows)

    @property
    def defaults(self) -> HierarchyDefaults:
        return self._defaults

    @property
    def snapshot(self) -> HierarchyLookup:
        return self._state[1]

    @property
    def rows(self) -> list[HierarchyRow]:
        """The finalized rows behind the current snapshot (a copy)."""
        return list(self._state[0])

    def read(self) -> tuple[list[HierarchyRow], HierarchyLookup]:
        """
        The current rows and the index built from them, read together.

        Use this when an operation needs both; reading `rows` and
        `snapshot` separately can straddle a rebuild.
        """
        rows, lookup = self._state
        return list(rows), lookup

    @property
    def version(self) -> int:
        return self._version

    def rebuild(self, rows: Optional[Iterable[Any]]) -> HierarchyLookup:
        """
        Replace the live snapshot with one built from `rows`.

        Runs the default-guarantee pass before indexing, so the strict
        build can only fail on a programming error.
        """
        finalized = ensure_default_hierarchy(rows, self._defaults)

        try:
            lookup = build_hierarchy_lookup(finalized, self._defaults, strict=True)
        except HierarchyInvariantError as e:
            if self._audit_logger:
                self._audit_logger.log_invariant_violation(
                    error_message=str(e),
                    details={"row_count": len(finalized)},
                )
            raise

        with self._lock:
            self._version += 1
            self._state = (tuple(finalized), lookup)
            version = self._version

        self._logger.info(
            "hierarchy_rebuilt",
            rows=len(finalized),
            projects=len(lookup.projects),
            version=version,
        )
        if self._audit_logger:
            self._audit_logger.log_hierarchy_rebuilt(row_count=len(finalized), version=version)

        return lookup

    def is_allowed(self, triple: Any) -> bool:
        return is_allowed_hierarchy_triple(triple, self.snapshot)

    def coerce(self, triple: Any) -> HierarchyRow:
        return coerce_hierarchy_triple(triple, self.snapshot)
