"""
routing_engines.dedupe -- Collapse duplicate entries in a resolved step.

Responsibility:
    After every slot of a step has been expanded, the same person can show
    up more than once (a direct-user slot and a role slot both naming them,
    two hierarchical slots landing on the same manager).  This engine keeps
    the first occurrence of each.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Resolved entries are keyed by ``("user", user_id)``: once a slot
      resolves to a concrete user the slot kind no longer distinguishes it.
    - Unresolved entries are keyed by ``(slot kind, configured id,
      min level)`` so two distinct broken slots both stay visible.
    - Order is preserved; the first occurrence wins.
"""

from __future__ import annotations

from collections.abc import Iterable

from routing_engines.tracer import traced_engine
from routing_kernel.domain.resolution import ResolvedApprover
from routing_kernel.domain.slots import HierarchicalSlot, slot_identifier


def composite_key(entry: ResolvedApprover) -> tuple:
    """Identity of an entry for deduplication."""
    if entry.user_id is not None:
        return ("user", str(entry.user_id))
    ident = slot_identifier(entry.slot) if entry.slot is not None else None
    min_level = (
        entry.slot.min_authority_level
        if isinstance(entry.slot, HierarchicalSlot)
        else None
    )
    return (
        entry.source_kind.value,
        str(ident) if ident is not None else "",
        "" if min_level is None else min_level,
    )


@traced_engine("approver_dedupe", "1.0")
def deduplicate_approvers(entries: Iterable[ResolvedApprover]) -> list[ResolvedApprover]:
    """Drop entries whose ``composite_key`` was already seen."""
    seen: set[tuple] = set()
    unique: list[ResolvedApprover] = []
    for entry in entries:
        key = composite_key(entry)
        if key in seen:
            continue
        seen.add(key)
        unique.append(entry)
    return unique
