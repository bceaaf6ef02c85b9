"""
routing_services.slot_resolver -- Expand approval step slots into users.

Responsibility:
    Turn the slots configured on an approval step (a specific user, a role,
    a position, a hierarchical level) into concrete ``ResolvedApprover``
    entries for one requester, escalating past the requester and their
    peers, and deduplicating the result.

Architecture position:
    Services layer.  Reads the org graph through ``OrgGraphReader``;
    delegates every authority search to ``AuthorityResolver``; ranking and
    deduplication come from ``routing_engines``.

Invariants enforced:
    - No self-approval: the requester's employee never appears as a
      resolved entry.  Where a slot would name them, the slot escalates to
      the requester's next authority level or is dropped.
    - Peer approval (same level, different position) on a user slot
      escalates when ``peer_escalation`` is on.
    - Misconfigured slots are not errors: they come back unresolved with an
      ``UnresolvedReason`` and are logged at WARNING.
    - Output order follows slot order; the first occurrence of each user
      wins deduplication.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import replace
from typing import assert_never
from uuid import UUID

from routing_engines.candidates import rank_key
from routing_engines.dedupe import deduplicate_approvers
from routing_engines.escalation import escalation_reason
from routing_kernel.domain.clock import Clock, SystemClock
from routing_kernel.domain.org import PlacedDesignation
from routing_kernel.domain.org_graph import DesignationFilter, OrgGraphReader
from routing_kernel.domain.resolution import (
    EscalationReason,
    ResolvedApprover,
    UnresolvedReason,
    unresolved,
)
from routing_kernel.domain.slots import (
    ApprovalSlot,
    HierarchicalSlot,
    PositionSlot,
    RoleSlot,
    UserSlot,
    slot_identifier,
)
from routing_kernel.logging_config import get_logger
from routing_services.authority_resolver import AuthorityResolver

logger = get_logger("services.slot_resolver")

# Reasons that point at bad step configuration rather than org-graph state.
_MISCONFIGURATION = frozenset({
    UnresolvedReason.MISSING_CONFIGURATION,
    UnresolvedReason.UNKNOWN_USER,
    UnresolvedReason.UNKNOWN_ROLE,
    UnresolvedReason.UNKNOWN_POSITION,
})


def _from_placed(slot: ApprovalSlot, placed: PlacedDesignation) -> ResolvedApprover:
    return ResolvedApprover(
        user_id=placed.user_id,
        source_kind=slot.kind,
        slot=slot,
        authority_level=placed.authority_level,
        unit_id=placed.unit_id,
        employee_id=placed.employee_id,
    )


class ApprovalSlotResolver:
    """Resolve the slots of one approval step for one requester."""

    def __init__(
        self,
        reader: OrgGraphReader,
        authority: AuthorityResolver,
        clock: Clock | None = None,
        peer_escalation: bool = True,
    ) -> None:
        self._reader = reader
        self._authority = authority
        self._clock = clock or SystemClock()
        self._peer_escalation = peer_escalation

    def resolve(
        self,
        slots: Sequence[ApprovalSlot],
        requester_id: UUID,
        sector_filter: Collection[UUID] | None = None,
        unit_filter: Collection[UUID] | None = None,
    ) -> list[ResolvedApprover]:
        """Expand ``slots`` in order and deduplicate.

        ``sector_filter`` / ``unit_filter`` are allow-lists applied to
        position slots only.
        """
        scope = self._authority.requester_scope(requester_id)
        entries: list[ResolvedApprover] = []
        for slot in slots:
            entries.extend(
                self._resolve_slot(slot, requester_id, scope, sector_filter, unit_filter)
            )
        result = deduplicate_approvers(entries)
        logger.debug(
            "step_slots_resolved",
            extra={
                "requester_id": str(requester_id),
                "slot_count": len(slots),
                "entry_count": len(result),
            },
        )
        return result

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _resolve_slot(
        self,
        slot: ApprovalSlot,
        requester_id: UUID,
        scope: PlacedDesignation | None,
        sector_filter: Collection[UUID] | None,
        unit_filter: Collection[UUID] | None,
    ) -> list[ResolvedApprover]:
        if isinstance(slot, UserSlot):
            return self._resolve_user(slot, requester_id, scope)
        if isinstance(slot, RoleSlot):
            return self._resolve_role(slot, requester_id, scope)
        if isinstance(slot, PositionSlot):
            return self._resolve_position(
                slot, requester_id, scope, sector_filter, unit_filter,
            )
        if isinstance(slot, HierarchicalSlot):
            return self._resolve_hierarchical(slot, requester_id)
        assert_never(slot)

    # ------------------------------------------------------------------
    # Slot kinds
    # ------------------------------------------------------------------

    def _resolve_user(
        self,
        slot: UserSlot,
        requester_id: UUID,
        scope: PlacedDesignation | None,
    ) -> list[ResolvedApprover]:
        if slot.user_id is None:
            return [self._unresolved(slot, UnresolvedReason.MISSING_CONFIGURATION)]
        user = self._reader.get_user(slot.user_id)
        if user is None:
            return [self._unresolved(slot, UnresolvedReason.UNKNOWN_USER)]
        if user.employee_id is None:
            return [ResolvedApprover(user_id=user.id, source_kind=slot.kind, slot=slot)]

        today = self._clock.today()
        placed = self._reader.get_primary_active_designation(user.employee_id, today)
        # Peer check needs the position even when the requester has no unit
        requester_placed = (
            scope if scope is not None
            else self._reader.get_primary_active_designation(requester_id, today)
        )
        reason = escalation_reason(
            requester_id=requester_id,
            approver_employee_id=user.employee_id,
            requester_position=(
                requester_placed.position if requester_placed is not None else None
            ),
            approver_position=placed.position if placed is not None else None,
            peer_escalation=self._peer_escalation,
        )
        if reason is not None:
            escalated = self._escalate(slot, requester_id, reason, user.id)
            return [escalated] if escalated is not None else []

        if placed is None:
            return [
                ResolvedApprover(
                    user_id=user.id,
                    source_kind=slot.kind,
                    slot=slot,
                    employee_id=user.employee_id,
                )
            ]
        return [replace(_from_placed(slot, placed), user_id=user.id)]

    def _resolve_role(
        self,
        slot: RoleSlot,
        requester_id: UUID,
        scope: PlacedDesignation | None,
    ) -> list[ResolvedApprover]:
        if slot.role_id is None:
            return [self._unresolved(slot, UnresolvedReason.MISSING_CONFIGURATION)]
        if not self._reader.role_exists(slot.role_id):
            return [self._unresolved(slot, UnresolvedReason.UNKNOWN_ROLE)]
        if scope is None:
            return [self._unresolved(slot, UnresolvedReason.REQUESTER_UNSCOPED)]

        rows = self._reader.find_designations(
            DesignationFilter(
                unit_id=scope.unit_id,
                active_only=True,
                as_of=self._clock.today(),
            )
        )
        entries: list[ResolvedApprover] = []
        seen: set[UUID] = set()
        for row in sorted(rows, key=rank_key):
            if row.employee_id == requester_id or row.user_id is None:
                continue
            if row.user_id in seen:
                continue
            if not self._reader.user_has_role(row.user_id, slot.role_id):
                continue
            seen.add(row.user_id)
            if row.user_id == scope.user_id:
                # Another employee record sharing the requester's login.
                escalated = self._escalate(
                    slot, requester_id, EscalationReason.SELF_APPROVAL, row.user_id,
                )
                if escalated is not None:
                    entries.append(escalated)
                continue
            entries.append(_from_placed(slot, row))

        if not entries:
            return [self._unresolved(slot, UnresolvedReason.NO_MATCH)]
        return entries

    def _resolve_position(
        self,
        slot: PositionSlot,
        requester_id: UUID,
        scope: PlacedDesignation | None,
        sector_filter: Collection[UUID] | None,
        unit_filter: Collection[UUID] | None,
    ) -> list[ResolvedApprover]:
        if slot.position_id is None:
            return [self._unresolved(slot, UnresolvedReason.MISSING_CONFIGURATION)]
        if self._reader.get_position(slot.position_id) is None:
            return [self._unresolved(slot, UnresolvedReason.UNKNOWN_POSITION)]
        if scope is None:
            return [self._unresolved(slot, UnresolvedReason.REQUESTER_UNSCOPED)]

        rows = self._reader.find_designations(
            DesignationFilter(
                unit_id=scope.unit_id,
                position_id=slot.position_id,
                active_only=True,
                as_of=self._clock.today(),
            )
        )
        allowed = [
            r for r in rows
            if (sector_filter is None or r.sector_id in sector_filter)
            and (unit_filter is None or r.unit_id in unit_filter)
        ]
        if rows and not allowed:
            return [self._unresolved(slot, UnresolvedReason.FILTERED_OUT)]

        requester_holds_position = False
        for row in sorted(allowed, key=rank_key):
            if row.employee_id == requester_id:
                requester_holds_position = True
                continue
            if row.user_id is None:
                continue
            return [_from_placed(slot, row)]

        if requester_holds_position:
            escalated = self._escalate(
                slot, requester_id, EscalationReason.SELF_APPROVAL, scope.user_id,
            )
            if escalated is not None:
                return [escalated]
            return [self._unresolved(slot, UnresolvedReason.NO_APPROVER_IN_HIERARCHY)]
        return [self._unresolved(slot, UnresolvedReason.NO_MATCH)]

    def _resolve_hierarchical(
        self,
        slot: HierarchicalSlot,
        requester_id: UUID,
    ) -> list[ResolvedApprover]:
        hit = self._authority.find_approver(requester_id, slot.min_authority_level)
        if hit is None:
            return [self._unresolved(slot, UnresolvedReason.NO_APPROVER_IN_HIERARCHY)]
        return [replace(hit, slot=slot)]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _escalate(
        self,
        slot: ApprovalSlot,
        requester_id: UUID,
        reason: EscalationReason,
        original_user_id: UUID | None,
    ) -> ResolvedApprover | None:
        # Default level is the requester's own level + 1.
        hit = self._authority.find_approver(requester_id)
        if hit is None:
            logger.info(
                "slot_dropped",
                extra={
                    "requester_id": str(requester_id),
                    "slot_kind": slot.kind.value,
                    "escalation_reason": reason.value,
                },
            )
            return None
        logger.info(
            "slot_escalated",
            extra={
                "requester_id": str(requester_id),
                "slot_kind": slot.kind.value,
                "escalation_reason": reason.value,
                "original_user_id": str(original_user_id) if original_user_id else None,
                "approver_user_id": str(hit.user_id),
                "strategy": hit.strategy.value if hit.strategy else None,
            },
        )
        return replace(
            hit,
            source_kind=slot.kind,
            slot=slot,
            was_escalated=True,
            escalation_reason=reason,
            original_user_id=original_user_id,
        )

    @staticmethod
    def _unresolved(slot: ApprovalSlot, reason: UnresolvedReason) -> ResolvedApprover:
        ident = slot_identifier(slot)
        payload = {
            "slot_kind": slot.kind.value,
            "slot_identifier": str(ident) if ident is not None else None,
            "unresolved_reason": reason.value,
        }
        if reason in _MISCONFIGURATION:
            logger.warning("slot_misconfigured", extra=payload)
        else:
            logger.info("slot_unresolved", extra=payload)
        return unresolved(slot, reason)
