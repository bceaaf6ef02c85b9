"""
routing_engines.candidates -- Approver candidate eligibility and ranking.

Responsibility:
    Decide which joined designation rows may act as approvers for a
    requester at a minimum authority level, and order them so the
    nearest-above candidate comes first.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import routing_kernel/domain types.

Invariants enforced:
    - Self-exclusion: a row belonging to the requester's employee is never
      eligible, whichever of their designations it is.
    - Has-user: a row whose employee has no login account is never eligible.
    - Nearest-above tie-break: ascending authority level; equal levels fall
      back to earliest start date, then designation id, so the order is
      total and repeatable.
    - Uniqueness: at most one row per user survives ``rank_candidates``
      (the best-ranked one).

Failure modes:
    - Empty input or no eligible rows -> empty tuple / None.  Never raises.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from routing_engines.tracer import traced_engine
from routing_kernel.domain.org import PlacedDesignation


def is_eligible(
    candidate: PlacedDesignation,
    min_level: int,
    requester_id: UUID,
) -> bool:
    """True if ``candidate`` may approve for ``requester_id`` at ``min_level``."""
    if candidate.employee_id == requester_id:
        return False
    if candidate.user_id is None:
        return False
    return candidate.authority_level >= min_level


def rank_key(candidate: PlacedDesignation) -> tuple[int, date, str]:
    """Sort key: level ascending, then start date, then designation id."""
    start = candidate.designation.start_date or date.min
    return (candidate.authority_level, start, str(candidate.designation.id))


@traced_engine("candidate_ranking", "1.0", fingerprint_fields=("min_level", "requester_id"))
def rank_candidates(
    candidates: Iterable[PlacedDesignation],
    *,
    min_level: int,
    requester_id: UUID,
) -> tuple[PlacedDesignation, ...]:
    """Eligible candidates, best first, one per user."""
    eligible = sorted(
        (c for c in candidates if is_eligible(c, min_level, requester_id)),
        key=rank_key,
    )
    seen: set[UUID] = set()
    ranked: list[PlacedDesignation] = []
    for c in eligible:
        if c.user_id in seen:
            continue
        seen.add(c.user_id)
        ranked.append(c)
    return tuple(ranked)


def select_nearest(
    candidates: Iterable[PlacedDesignation],
    *,
    min_level: int,
    requester_id: UUID,
) -> PlacedDesignation | None:
    """The single nearest-above candidate, or None."""
    ranked = rank_candidates(candidates, min_level=min_level, requester_id=requester_id)
    return ranked[0] if ranked else None
