"""
routing_engines.escalation -- Required-level and self/peer escalation rules.

Responsibility:
    Pure decisions the resolvers make before and after searching:
    the authority threshold to search at, and whether a naively matched
    approver must be replaced because they are the requester or a peer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Required level defaults to the requester's level + 1.
    - Self-approval always escalates.
    - Peer approval (same authority level, different position) escalates
      when ``peer_escalation`` is on.  Holding the *same* position is not a
      peer relationship.
"""

from __future__ import annotations

from uuid import UUID

from routing_kernel.domain.org import Position
from routing_kernel.domain.resolution import EscalationReason


def required_level(requester_level: int, min_level: int | None) -> int:
    """The authority threshold a search should use."""
    if min_level is not None:
        return min_level
    return requester_level + 1


def is_peer(requester_position: Position, approver_position: Position) -> bool:
    """Different positions sitting at the same authority level."""
    if requester_position.id == approver_position.id:
        return False
    return (
        requester_position.effective_authority_level
        == approver_position.effective_authority_level
    )


def escalation_reason(
    *,
    requester_id: UUID,
    approver_employee_id: UUID | None,
    requester_position: Position | None,
    approver_position: Position | None,
    peer_escalation: bool = True,
) -> EscalationReason | None:
    """Why a configured approver must be escalated past, or None if they stand."""
    if approver_employee_id is not None and approver_employee_id == requester_id:
        return EscalationReason.SELF_APPROVAL
    if not peer_escalation:
        return None
    if requester_position is None or approver_position is None:
        return None
    if is_peer(requester_position, approver_position):
        return EscalationReason.PEER_APPROVAL
    return None
