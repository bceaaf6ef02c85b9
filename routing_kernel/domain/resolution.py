"""
Resolution result types (``routing_kernel.domain.resolution``).

Responsibility
--------------
What the router hands back: a ``ResolvedApprover`` per expanded slot,
annotated with where it came from (slot kind, search strategy), whether
escalation happened and why, and -- for slots that could not be turned
into a user -- an ``UnresolvedReason`` diagnostic.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``STRATEGY_ORDER`` is the only order in which the authority search may
  visit its tiers.
* A ``ResolvedApprover`` is resolved iff ``user_id`` is set; an unresolved
  one always carries an ``unresolved_reason``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from routing_kernel.domain.slots import ApprovalSlot, SlotKind


class SearchStrategy(str, Enum):
    """Authority search tiers, in evaluation order."""

    SAME_UNIT = "same_unit"
    ANCESTOR_CHAIN = "ancestor_chain"
    SYSTEM_WIDE = "system_wide"
    SECTOR_WIDE = "sector_wide"


STRATEGY_ORDER: tuple[SearchStrategy, ...] = (
    SearchStrategy.SAME_UNIT,
    SearchStrategy.ANCESTOR_CHAIN,
    SearchStrategy.SYSTEM_WIDE,
    SearchStrategy.SECTOR_WIDE,
)


class EscalationReason(str, Enum):
    """Why a naively matched approver was replaced."""

    SELF_APPROVAL = "self_approval"
    PEER_APPROVAL = "peer_approval"


class UnresolvedReason(str, Enum):
    """Diagnostic tag for a slot that did not produce a user."""

    MISSING_CONFIGURATION = "missing_configuration"
    UNKNOWN_USER = "unknown_user"
    UNKNOWN_ROLE = "unknown_role"
    UNKNOWN_POSITION = "unknown_position"
    REQUESTER_UNSCOPED = "requester_unscoped"
    NO_MATCH = "no_match"
    FILTERED_OUT = "filtered_out"
    NO_APPROVER_IN_HIERARCHY = "no_approver_in_hierarchy"


@dataclass(frozen=True)
class ResolvedApprover:
    """One entry of a resolved approval step.

    ``source_kind`` is the slot kind that produced the entry; ``strategy``
    is set whenever the authority search supplied the user (hierarchical
    slots and escalations).  ``original_user_id`` is the user the slot
    matched before escalation or delegation replaced it.
    """

    user_id: UUID | None
    source_kind: SlotKind
    slot: ApprovalSlot | None = None
    strategy: SearchStrategy | None = None
    was_escalated: bool = False
    escalation_reason: EscalationReason | None = None
    authority_level: int | None = None
    unit_id: UUID | None = None
    employee_id: UUID | None = None
    original_user_id: UUID | None = None
    delegated_from_user_id: UUID | None = None
    unresolved_reason: UnresolvedReason | None = None

    @property
    def is_resolved(self) -> bool:
        return self.user_id is not None

    @property
    def was_delegated(self) -> bool:
        return self.delegated_from_user_id is not None

    def to_dict(self) -> dict:
        """Plain-dict view for logs, previews and API payloads."""
        return {
            "user_id": str(self.user_id) if self.user_id else None,
            "source_kind": self.source_kind.value,
            "strategy": self.strategy.value if self.strategy else None,
            "was_escalated": self.was_escalated,
            "escalation_reason": (
                self.escalation_reason.value if self.escalation_reason else None
            ),
            "authority_level": self.authority_level,
            "unit_id": str(self.unit_id) if self.unit_id else None,
            "employee_id": str(self.employee_id) if self.employee_id else None,
            "original_user_id": (
                str(self.original_user_id) if self.original_user_id else None
            ),
            "delegated_from_user_id": (
                str(self.delegated_from_user_id)
                if self.delegated_from_user_id
                else None
            ),
            "unresolved_reason": (
                self.unresolved_reason.value if self.unresolved_reason else None
            ),
        }


def unresolved(
    slot: ApprovalSlot,
    reason: UnresolvedReason,
) -> ResolvedApprover:
    """Pass-through entry for a slot the router could not resolve."""
    return ResolvedApprover(
        user_id=None,
        source_kind=slot.kind,
        slot=slot,
        unresolved_reason=reason,
    )
