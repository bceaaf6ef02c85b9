"""
Module: routing_engines
Responsibility:
    Package entrypoint re-exporting the pure routing calculations used by
    ``routing_services``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import routing_kernel/domain types (and sibling engine modules).
    MUST NOT import routing_services or routing_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in by the services that own a Clock.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from routing_engines.candidates import select_nearest
    from routing_engines.hierarchy import AncestorWalker
    from routing_engines.dedupe import deduplicate_approvers
"""

from routing_engines.candidates import (
    is_eligible,
    rank_candidates,
    rank_key,
    select_nearest,
)
from routing_engines.dedupe import composite_key, deduplicate_approvers
from routing_engines.escalation import escalation_reason, is_peer, required_level
from routing_engines.hierarchy import (
    DEFAULT_MAX_ANCESTOR_DEPTH,
    AncestorWalker,
    WalkTermination,
    ancestor_ids,
)

__all__ = [
    "is_eligible",
    "rank_candidates",
    "rank_key",
    "select_nearest",
    "composite_key",
    "deduplicate_approvers",
    "escalation_reason",
    "is_peer",
    "required_level",
    "DEFAULT_MAX_ANCESTOR_DEPTH",
    "AncestorWalker",
    "WalkTermination",
    "ancestor_ids",
]
