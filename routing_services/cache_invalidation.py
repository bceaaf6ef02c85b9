"""
routing_services.cache_invalidation -- Drop stale routing cache entries.

Responsibility:
    Hook for the org-administration subsystem.  When a designation is
    created, updated or deleted, the cached next-approver answers for the
    affected employee and for everyone sharing the unit may be wrong.

Invariants enforced:
    - Invalidation is by prefix, so every cached min-level variant for an
      affected requester goes.
    - Invalidation never raises for unknown employees or units.

Known limitation:
    Requesters in descendant units whose answer came from the ancestor
    chain are not enumerated; their entries age out on the TTL.  Callers
    that need immediate consistency use ``invalidate_all``.
"""

from __future__ import annotations

from uuid import UUID

from routing_kernel.domain.org_graph import DesignationFilter, OrgGraphReader
from routing_kernel.logging_config import get_logger
from routing_kernel.utils.ttl_cache import RoutingCache, requester_key_prefix

logger = get_logger("services.cache_invalidation")


class RoutingCacheInvalidator:
    """Clears cached routing results affected by org-graph writes."""

    def __init__(
        self,
        cache: RoutingCache,
        reader: OrgGraphReader,
    ) -> None:
        self._cache = cache
        self._reader = reader

    def on_designation_changed(
        self,
        employee_id: UUID,
        unit_id: UUID | None = None,
    ) -> int:
        """Invalidate after a designation write; return entries removed.

        ``unit_id`` is the unit the designation sits (or sat) in; pass the
        old unit too when a designation moves, via a second call.
        """
        affected: set[UUID] = {employee_id}
        if unit_id is not None:
            rows = self._reader.find_designations(
                DesignationFilter(unit_id=unit_id, active_only=False)
            )
            affected.update(r.employee_id for r in rows)

        removed = 0
        for emp in sorted(affected, key=str):
            removed += self._cache.delete_prefix(requester_key_prefix(emp))

        logger.info(
            "routing_cache_invalidated",
            extra={
                "employee_id": str(employee_id),
                "unit_id": str(unit_id) if unit_id else None,
                "affected_requesters": len(affected),
                "entries_removed": removed,
            },
        )
        return removed

    def invalidate_all(self) -> None:
        """Drop every cached routing result."""
        self._cache.clear()
        logger.info("routing_cache_cleared")
