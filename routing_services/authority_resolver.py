"""
routing_services.authority_resolver -- Four-tier authority search.

Responsibility:
    Find the approver(s) at or above a required authority level for a
    requester, searching in order:

        1. same unit
        2. unit ancestor chain (nearest parent first)
        3. system-wide positions (no sector)
        4. every unit of the requester's sector

    ``find_approver`` returns the first tier's nearest-above pick;
    ``find_approvers`` unions every tier.

Architecture position:
    Services layer.  Reads the org graph only through the injected
    ``OrgGraphReader``; ranking, the bounded ancestor walk and the level
    default come from ``routing_engines``.

Invariants enforced:
    - The requester never appears in any result, at any tier.
    - Tiers are visited in ``STRATEGY_ORDER``; no tier is skipped.
    - Only primary, currently-active designations of employees with a
      login account are candidates.
    - The ancestor walk ends on a cycle or after ``max_ancestor_depth``
      parents (logged, tier yields nothing).

Failure modes:
    - Requester without an active primary designation carrying both a unit
      and a position -> None / empty.  Not an error.
    - Nobody qualifies in any tier -> None / empty.  Not an error.
    - Caller-supplied ``min_level`` outside 0..100 ->
      InvalidAuthorityLevelError.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date
from uuid import UUID

from routing_engines.candidates import rank_candidates, select_nearest
from routing_engines.escalation import required_level
from routing_engines.hierarchy import (
    DEFAULT_MAX_ANCESTOR_DEPTH,
    AncestorWalker,
    WalkTermination,
)
from routing_kernel.domain.clock import Clock, SystemClock
from routing_kernel.domain.org import PlacedDesignation, validate_authority_level
from routing_kernel.domain.org_graph import DesignationFilter, OrgGraphReader
from routing_kernel.domain.resolution import (
    STRATEGY_ORDER,
    ResolvedApprover,
    SearchStrategy,
)
from routing_kernel.domain.slots import SlotKind
from routing_kernel.logging_config import get_logger
from routing_kernel.utils.ttl_cache import (
    RoutingCache,
    get_or_compute,
    next_approver_key,
)

logger = get_logger("services.authority_resolver")


def _to_resolved(
    candidate: PlacedDesignation,
    strategy: SearchStrategy,
) -> ResolvedApprover:
    return ResolvedApprover(
        user_id=candidate.user_id,
        source_kind=SlotKind.HIERARCHICAL,
        strategy=strategy,
        authority_level=candidate.authority_level,
        unit_id=candidate.unit_id,
        employee_id=candidate.employee_id,
    )


class AuthorityResolver:
    """Nearest-above approver search over the org graph."""

    def __init__(
        self,
        reader: OrgGraphReader,
        cache: RoutingCache | None = None,
        clock: Clock | None = None,
        max_ancestor_depth: int = DEFAULT_MAX_ANCESTOR_DEPTH,
    ) -> None:
        self._reader = reader
        self._cache = cache
        self._clock = clock or SystemClock()
        self._max_ancestor_depth = max_ancestor_depth

    # ------------------------------------------------------------------
    # Requester scope
    # ------------------------------------------------------------------

    def requester_scope(self, requester_id: UUID) -> PlacedDesignation | None:
        """The requester's active primary designation, if it has a unit."""
        placed = self._reader.get_primary_active_designation(
            requester_id, self._clock.today(),
        )
        if placed is None or placed.unit is None:
            return None
        return placed

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_approver(
        self,
        requester_id: UUID,
        min_level: int | None = None,
        *,
        use_cache: bool = True,
    ) -> ResolvedApprover | None:
        """Nearest-above approver from the first tier that has one."""
        if min_level is not None:
            validate_authority_level(min_level)

        def compute() -> ResolvedApprover | None:
            return self._find_approver_uncached(requester_id, min_level)

        if self._cache is None or not use_cache:
            return compute()
        return get_or_compute(
            self._cache, next_approver_key(requester_id, min_level), compute,
        )

    def find_approvers(
        self,
        requester_id: UUID,
        min_level: int | None = None,
    ) -> tuple[ResolvedApprover, ...]:
        """Every qualifying approver from all four tiers, one entry per user.

        Entries keep tier order; within a tier they are ranked
        nearest-above first.  A user found in an earlier tier keeps that
        tier's provenance.
        """
        if min_level is not None:
            validate_authority_level(min_level)
        scope = self.requester_scope(requester_id)
        if scope is None:
            logger.info(
                "requester_unscoped",
                extra={"requester_id": str(requester_id)},
            )
            return ()

        level = required_level(scope.authority_level, min_level)
        today = self._clock.today()
        found: list[ResolvedApprover] = []
        seen: set[UUID] = set()

        def collect(rows: tuple[PlacedDesignation, ...], strategy: SearchStrategy) -> None:
            for c in rank_candidates(rows, min_level=level, requester_id=requester_id):
                if c.user_id in seen:
                    continue
                seen.add(c.user_id)
                found.append(_to_resolved(c, strategy))

        for strategy in STRATEGY_ORDER:
            for rows in self._tier_rows(strategy, scope, requester_id, level, today):
                collect(rows, strategy)

        logger.debug(
            "approvers_collected",
            extra={
                "requester_id": str(requester_id),
                "required_level": level,
                "count": len(found),
            },
        )
        return tuple(found)

    # ------------------------------------------------------------------
    # Single-pick search
    # ------------------------------------------------------------------

    def _find_approver_uncached(
        self,
        requester_id: UUID,
        min_level: int | None,
    ) -> ResolvedApprover | None:
        scope = self.requester_scope(requester_id)
        if scope is None:
            logger.info(
                "requester_unscoped",
                extra={"requester_id": str(requester_id)},
            )
            return None

        level = required_level(scope.authority_level, min_level)
        today = self._clock.today()

        for strategy in STRATEGY_ORDER:
            hit = self._search_tier(strategy, scope, requester_id, level, today)
            if hit is not None:
                logger.info(
                    "approver_resolved",
                    extra={
                        "requester_id": str(requester_id),
                        "approver_user_id": str(hit.user_id),
                        "strategy": strategy.value,
                        "required_level": level,
                        "authority_level": hit.authority_level,
                    },
                )
                return hit

        logger.info(
            "approver_unresolved",
            extra={"requester_id": str(requester_id), "required_level": level},
        )
        return None

    def _search_tier(
        self,
        strategy: SearchStrategy,
        scope: PlacedDesignation,
        requester_id: UUID,
        level: int,
        today: date,
    ) -> ResolvedApprover | None:
        for rows in self._tier_rows(strategy, scope, requester_id, level, today):
            hit = self._pick(rows, level, requester_id, strategy)
            if hit is not None:
                return hit
        return None

    def _tier_rows(
        self,
        strategy: SearchStrategy,
        scope: PlacedDesignation,
        requester_id: UUID,
        level: int,
        today: date,
    ) -> Iterator[tuple[PlacedDesignation, ...]]:
        """Yield candidate row groups for one tier, nearest group first.

        The ancestor tier yields one group per ancestor unit; the walk is
        reported only once the generator is exhausted.
        """
        if strategy is SearchStrategy.SAME_UNIT:
            yield self._unit_rows(scope.unit_id, level, today)
        elif strategy is SearchStrategy.ANCESTOR_CHAIN:
            walker = self._walker(scope.unit_id)
            for ancestor in walker:
                yield self._unit_rows(ancestor.id, level, today)
            self._report_walk(walker, requester_id)
        elif strategy is SearchStrategy.SYSTEM_WIDE:
            yield self._system_wide_rows(level, today)
        else:
            yield self._sector_rows(scope, level, today)

    @staticmethod
    def _pick(
        rows: tuple[PlacedDesignation, ...],
        level: int,
        requester_id: UUID,
        strategy: SearchStrategy,
    ) -> ResolvedApprover | None:
        best = select_nearest(rows, min_level=level, requester_id=requester_id)
        return _to_resolved(best, strategy) if best is not None else None

    # ------------------------------------------------------------------
    # Tier queries
    # ------------------------------------------------------------------

    def _unit_rows(
        self, unit_id: UUID, level: int, today: date,
    ) -> tuple[PlacedDesignation, ...]:
        return self._reader.find_designations(
            DesignationFilter(
                unit_id=unit_id,
                min_authority_level=level,
                primary_only=True,
                active_only=True,
                as_of=today,
            )
        )

    def _system_wide_rows(
        self, level: int, today: date,
    ) -> tuple[PlacedDesignation, ...]:
        return self._reader.find_designations(
            DesignationFilter(
                system_wide_only=True,
                min_authority_level=level,
                primary_only=True,
                active_only=True,
                as_of=today,
            )
        )

    def _sector_rows(
        self, scope: PlacedDesignation, level: int, today: date,
    ) -> tuple[PlacedDesignation, ...]:
        sector_id = scope.sector_id
        if sector_id is None:
            return ()
        unit_ids = frozenset(u.id for u in self._reader.get_units_in_sector(sector_id))
        if not unit_ids:
            return ()
        return self._reader.find_designations(
            DesignationFilter(
                unit_ids=unit_ids,
                min_authority_level=level,
                primary_only=True,
                active_only=True,
                as_of=today,
            )
        )

    def _walker(self, unit_id: UUID) -> AncestorWalker:
        return AncestorWalker(unit_id, self._reader.get_unit_parent, self._max_ancestor_depth)

    def _report_walk(self, walker: AncestorWalker, requester_id: UUID) -> None:
        if walker.termination is WalkTermination.CYCLE:
            logger.warning(
                "unit_cycle_detected",
                extra={
                    "requester_id": str(requester_id),
                    "start_unit_id": str(walker.start_unit_id),
                    "visited_unit_ids": [str(u) for u in walker.visited],
                },
            )
        elif walker.termination is WalkTermination.DEPTH_LIMIT:
            logger.warning(
                "unit_depth_exceeded",
                extra={
                    "requester_id": str(requester_id),
                    "start_unit_id": str(walker.start_unit_id),
                    "max_depth": walker.max_depth,
                },
            )
