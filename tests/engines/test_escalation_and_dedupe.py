"""
Tests for the escalation rules and approver deduplication engines.

Tests cover:
- required_level default and override
- self and peer escalation reasons, peer toggle
- composite_key / deduplicate_approvers: resolved by user, unresolved by slot
"""

from uuid import uuid4

from routing_engines.dedupe import composite_key, deduplicate_approvers
from routing_engines.escalation import escalation_reason, is_peer, required_level
from routing_kernel.domain.org import Position
from routing_kernel.domain.resolution import (
    EscalationReason,
    ResolvedApprover,
    UnresolvedReason,
    unresolved,
)
from routing_kernel.domain.slots import (
    HierarchicalSlot,
    RoleSlot,
    SlotKind,
    UserSlot,
)


class TestRequiredLevel:

    def test_defaults_to_one_above(self):
        assert required_level(50, None) == 51

    def test_explicit_level_wins(self):
        assert required_level(50, 30) == 30


class TestEscalationReason:

    def test_self(self):
        me = uuid4()
        reason = escalation_reason(
            requester_id=me, approver_employee_id=me,
            requester_position=None, approver_position=None,
        )
        assert reason is EscalationReason.SELF_APPROVAL

    def test_peer_same_level_different_position(self):
        a = Position(id=uuid4(), authority_level=60)
        b = Position(id=uuid4(), authority_level=60)
        assert is_peer(a, b)
        reason = escalation_reason(
            requester_id=uuid4(), approver_employee_id=uuid4(),
            requester_position=a, approver_position=b,
        )
        assert reason is EscalationReason.PEER_APPROVAL

    def test_same_position_is_not_peer(self):
        a = Position(id=uuid4(), authority_level=60)
        assert not is_peer(a, a)

    def test_peer_toggle_off(self):
        a = Position(id=uuid4(), authority_level=60)
        b = Position(id=uuid4(), authority_level=60)
        reason = escalation_reason(
            requester_id=uuid4(), approver_employee_id=uuid4(),
            requester_position=a, approver_position=b, peer_escalation=False,
        )
        assert reason is None

    def test_senior_approver_stands(self):
        reason = escalation_reason(
            requester_id=uuid4(), approver_employee_id=uuid4(),
            requester_position=Position(id=uuid4(), authority_level=50),
            approver_position=Position(id=uuid4(), authority_level=80),
        )
        assert reason is None


class TestDeduplicate:

    def test_user_and_role_for_same_person_collapse(self):
        user = uuid4()
        from_user = ResolvedApprover(user_id=user, source_kind=SlotKind.USER, slot=UserSlot(user))
        from_role = ResolvedApprover(user_id=user, source_kind=SlotKind.ROLE, slot=RoleSlot(uuid4()))
        assert deduplicate_approvers([from_user, from_role]) == [from_user]

    def test_first_occurrence_wins_and_order_kept(self):
        a, b = uuid4(), uuid4()
        entries = [
            ResolvedApprover(user_id=a, source_kind=SlotKind.USER),
            ResolvedApprover(user_id=b, source_kind=SlotKind.HIERARCHICAL),
            ResolvedApprover(user_id=a, source_kind=SlotKind.HIERARCHICAL),
        ]
        result = deduplicate_approvers(entries)
        assert [e.user_id for e in result] == [a, b]
        assert result[0].source_kind is SlotKind.USER

    def test_distinct_unresolved_slots_both_kept(self):
        r1 = unresolved(RoleSlot(uuid4()), UnresolvedReason.UNKNOWN_ROLE)
        r2 = unresolved(RoleSlot(uuid4()), UnresolvedReason.UNKNOWN_ROLE)
        assert len(deduplicate_approvers([r1, r2])) == 2

    def test_identical_unresolved_slots_collapse(self):
        slot = HierarchicalSlot(90)
        r1 = unresolved(slot, UnresolvedReason.NO_APPROVER_IN_HIERARCHY)
        r2 = unresolved(slot, UnresolvedReason.NO_APPROVER_IN_HIERARCHY)
        assert deduplicate_approvers([r1, r2]) == [r1]

    def test_hierarchical_levels_distinguish_unresolved(self):
        r1 = unresolved(HierarchicalSlot(80), UnresolvedReason.NO_APPROVER_IN_HIERARCHY)
        r2 = unresolved(HierarchicalSlot(90), UnresolvedReason.NO_APPROVER_IN_HIERARCHY)
        assert composite_key(r1) != composite_key(r2)
