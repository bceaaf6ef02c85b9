"""
Approval slot types (``routing_kernel.domain.slots``).

Responsibility
--------------
The closed set of ways an approval step can name its approver:

* ``UserSlot`` -- a specific user account.
* ``RoleSlot`` -- whoever holds a role inside the requester's unit.
* ``PositionSlot`` -- whoever holds a position inside the requester's unit.
* ``HierarchicalSlot`` -- the nearest person above a minimum authority level.

``ApprovalSlot`` is the union of the four.  Code that dispatches on a
slot uses an isinstance chain ending in ``assert_never`` so that a new
slot kind is a type error until every dispatcher handles it.

Identifying fields are optional: a slot saved with no user/role/position
is still a slot; the resolver passes it through as unresolved.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects plus dict (de)serialisation
for the ``approver_type`` config format used by stored workflow steps.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union
from uuid import UUID

from routing_kernel.domain.org import validate_authority_level
from routing_kernel.exceptions import (
    InvalidAuthorityLevelError,
    InvalidSlotFieldError,
    UnknownSlotTypeError,
)


class SlotKind(str, Enum):
    """Approver slot discriminator (matches stored ``approver_type``)."""

    USER = "user"
    ROLE = "role"
    POSITION = "position"
    HIERARCHICAL = "hierarchical"


@dataclass(frozen=True)
class UserSlot:
    user_id: UUID | None

    kind: ClassVar[SlotKind] = SlotKind.USER


@dataclass(frozen=True)
class RoleSlot:
    role_id: UUID | None

    kind: ClassVar[SlotKind] = SlotKind.ROLE


@dataclass(frozen=True)
class PositionSlot:
    position_id: UUID | None

    kind: ClassVar[SlotKind] = SlotKind.POSITION


@dataclass(frozen=True)
class HierarchicalSlot:
    """None means "one level above the requester"."""

    min_authority_level: int | None = None

    kind: ClassVar[SlotKind] = SlotKind.HIERARCHICAL

    def __post_init__(self) -> None:
        if self.min_authority_level is not None:
            validate_authority_level(self.min_authority_level)


ApprovalSlot = Union[UserSlot, RoleSlot, PositionSlot, HierarchicalSlot]


# =========================================================================
# Dict format
# =========================================================================

_ID_FIELDS: dict[SlotKind, str] = {
    SlotKind.USER: "approver_id",
    SlotKind.ROLE: "approver_role_id",
    SlotKind.POSITION: "approver_position_id",
}


def _parse_uuid(kind: SlotKind, field_name: str, value: Any) -> UUID | None:
    if value is None or value == "":
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise InvalidSlotFieldError(kind.value, field_name, value) from exc


def parse_slot(data: Mapping[str, Any]) -> ApprovalSlot:
    """Build a slot from its stored dict form.

    Expected keys: ``approver_type`` plus one of ``approver_id``,
    ``approver_role_id``, ``approver_position_id`` or
    ``min_authority_level``.

    Raises:
        UnknownSlotTypeError: if ``approver_type`` is not a known kind.
        InvalidSlotFieldError: if an identifier is not a UUID or the
            level is not an in-range integer.
    """
    raw_type = data.get("approver_type")
    try:
        kind = SlotKind(raw_type)
    except ValueError as exc:
        raise UnknownSlotTypeError(raw_type) from exc

    if kind is SlotKind.HIERARCHICAL:
        level = data.get("min_authority_level")
        try:
            return HierarchicalSlot(min_authority_level=level)
        except InvalidAuthorityLevelError as exc:
            raise InvalidSlotFieldError(kind.value, "min_authority_level", level) from exc

    field_name = _ID_FIELDS[kind]
    ident = _parse_uuid(kind, field_name, data.get(field_name))
    if kind is SlotKind.USER:
        return UserSlot(user_id=ident)
    if kind is SlotKind.ROLE:
        return RoleSlot(role_id=ident)
    return PositionSlot(position_id=ident)


def slot_to_dict(slot: ApprovalSlot) -> dict[str, Any]:
    """Inverse of ``parse_slot``; identifiers rendered as strings."""
    if isinstance(slot, HierarchicalSlot):
        return {
            "approver_type": slot.kind.value,
            "min_authority_level": slot.min_authority_level,
        }
    ident = slot_identifier(slot)
    return {
        "approver_type": slot.kind.value,
        _ID_FIELDS[slot.kind]: str(ident) if ident is not None else None,
    }


def slot_identifier(slot: ApprovalSlot) -> UUID | None:
    """The configured user/role/position id of a slot (None for hierarchical)."""
    if isinstance(slot, UserSlot):
        return slot.user_id
    if isinstance(slot, RoleSlot):
        return slot.role_id
    if isinstance(slot, PositionSlot):
        return slot.position_id
    return None
