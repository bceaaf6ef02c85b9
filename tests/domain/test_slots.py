"""
Tests for approval slot types and their dict form.

Tests cover:
- parse_slot: each approver_type, blank identifiers, bad UUIDs, bad levels
- slot_to_dict / slot_identifier
- HierarchicalSlot level validation
"""

from uuid import uuid4

import pytest

from routing_kernel.domain.slots import (
    HierarchicalSlot,
    PositionSlot,
    RoleSlot,
    SlotKind,
    UserSlot,
    parse_slot,
    slot_identifier,
    slot_to_dict,
)
from routing_kernel.exceptions import (
    InvalidAuthorityLevelError,
    InvalidSlotFieldError,
    SlotConfigurationError,
    UnknownSlotTypeError,
)


class TestParseSlot:

    def test_user_slot(self):
        uid = uuid4()
        slot = parse_slot({"approver_type": "user", "approver_id": str(uid)})
        assert slot == UserSlot(user_id=uid)
        assert slot.kind is SlotKind.USER

    def test_role_slot(self):
        rid = uuid4()
        assert parse_slot({"approver_type": "role", "approver_role_id": rid}) == RoleSlot(rid)

    def test_position_slot(self):
        pid = uuid4()
        slot = parse_slot({"approver_type": "position", "approver_position_id": str(pid)})
        assert slot == PositionSlot(position_id=pid)

    def test_hierarchical_slot_with_and_without_level(self):
        assert parse_slot({"approver_type": "hierarchical"}) == HierarchicalSlot()
        slot = parse_slot({"approver_type": "hierarchical", "min_authority_level": 70})
        assert slot.min_authority_level == 70

    @pytest.mark.parametrize("blank", [None, ""])
    def test_blank_identifier_is_kept_as_none(self, blank):
        """A slot saved without its id is still a slot; resolution reports it."""
        slot = parse_slot({"approver_type": "role", "approver_role_id": blank})
        assert slot == RoleSlot(role_id=None)

    def test_unknown_type_raises(self):
        with pytest.raises(UnknownSlotTypeError) as exc_info:
            parse_slot({"approver_type": "committee"})
        assert exc_info.value.approver_type == "committee"
        assert exc_info.value.code == "UNKNOWN_SLOT_TYPE"

    def test_missing_type_raises(self):
        with pytest.raises(UnknownSlotTypeError):
            parse_slot({"approver_id": str(uuid4())})

    def test_bad_uuid_raises(self):
        with pytest.raises(InvalidSlotFieldError) as exc_info:
            parse_slot({"approver_type": "user", "approver_id": "not-a-uuid"})
        assert exc_info.value.field_name == "approver_id"
        assert isinstance(exc_info.value, SlotConfigurationError)

    @pytest.mark.parametrize("level", [-1, 101, "high", True])
    def test_bad_level_raises(self, level):
        with pytest.raises(InvalidSlotFieldError) as exc_info:
            parse_slot({"approver_type": "hierarchical", "min_authority_level": level})
        assert exc_info.value.field_name == "min_authority_level"


class TestSlotHelpers:

    def test_slot_identifier(self):
        uid, rid, pid = uuid4(), uuid4(), uuid4()
        assert slot_identifier(UserSlot(uid)) == uid
        assert slot_identifier(RoleSlot(rid)) == rid
        assert slot_identifier(PositionSlot(pid)) == pid
        assert slot_identifier(HierarchicalSlot(50)) is None

    def test_slot_to_dict_parses_back(self):
        slots = [UserSlot(uuid4()), RoleSlot(None), PositionSlot(uuid4()), HierarchicalSlot(40)]
        for slot in slots:
            assert parse_slot(slot_to_dict(slot)) == slot

    def test_hierarchical_rejects_out_of_range(self):
        with pytest.raises(InvalidAuthorityLevelError):
            HierarchicalSlot(min_authority_level=150)

    def test_slots_are_frozen(self):
        slot = UserSlot(uuid4())
        with pytest.raises(AttributeError):
            slot.user_id = uuid4()
