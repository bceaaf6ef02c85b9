"""
Org-structure domain types (``routing_kernel.domain.org``).

Responsibility
--------------
Frozen value objects for the organization graph the router reads:
sectors, units, positions, employee designations, employees, user
accounts and approval delegations.  All are read-only snapshots; the
org-administration subsystem owns their lifecycle.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  May import only
from ``routing_kernel.exceptions``.

Invariants enforced
-------------------
* Authority levels are integers in ``[MIN_AUTHORITY_LEVEL,
  MAX_AUTHORITY_LEVEL]`` (``validate_authority_level``).
* A position with no configured level has ``DEFAULT_AUTHORITY_LEVEL``.
* A designation is active on ``d`` when its ``[start_date, end_date]``
  window (either end open) contains ``d``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from uuid import UUID

from routing_kernel.exceptions import InvalidAuthorityLevelError

MIN_AUTHORITY_LEVEL = 0
MAX_AUTHORITY_LEVEL = 100

# Unconfigured position = lowest assignable authority.
DEFAULT_AUTHORITY_LEVEL = 1


def validate_authority_level(level: Any) -> int:
    """Return ``level`` if it is an int within range, else raise.

    Raises:
        InvalidAuthorityLevelError: for bools, non-ints and out-of-range values.
    """
    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidAuthorityLevelError(level, MIN_AUTHORITY_LEVEL, MAX_AUTHORITY_LEVEL)
    if not MIN_AUTHORITY_LEVEL <= level <= MAX_AUTHORITY_LEVEL:
        raise InvalidAuthorityLevelError(level, MIN_AUTHORITY_LEVEL, MAX_AUTHORITY_LEVEL)
    return level


@dataclass(frozen=True)
class Sector:
    """Top-level partition of the organization (e.g. Academic)."""

    id: UUID
    name: str = ""


@dataclass(frozen=True)
class Unit:
    """A node in a sector's unit forest."""

    id: UUID
    sector_id: UUID
    parent_unit_id: UUID | None = None
    name: str = ""
    is_active: bool = True

    @property
    def is_root(self) -> bool:
        return self.parent_unit_id is None


@dataclass(frozen=True)
class Position:
    """A job position carrying an authority level.

    ``sector_id`` of None marks a system-wide position, assignable in any
    unit regardless of sector.
    """

    id: UUID
    authority_level: int | None = None
    sector_id: UUID | None = None
    name: str = ""

    @property
    def effective_authority_level(self) -> int:
        if self.authority_level is None:
            return DEFAULT_AUTHORITY_LEVEL
        return self.authority_level

    @property
    def is_system_wide(self) -> bool:
        return self.sector_id is None


@dataclass(frozen=True)
class Designation:
    """An employee's time-bounded assignment to a unit and position."""

    id: UUID
    employee_id: UUID
    position_id: UUID
    unit_id: UUID | None = None
    is_primary: bool = False
    start_date: date | None = None
    end_date: date | None = None

    def is_active_on(self, as_of: date) -> bool:
        if self.start_date is not None and self.start_date > as_of:
            return False
        if self.end_date is not None and self.end_date < as_of:
            return False
        return True


@dataclass(frozen=True)
class Employee:
    """An employee, optionally linked to a login account."""

    id: UUID
    name: str = ""
    user_id: UUID | None = None

    @property
    def has_user(self) -> bool:
        return self.user_id is not None


@dataclass(frozen=True)
class UserAccount:
    """A login identity; only users can be assigned as approvers."""

    id: UUID
    employee_id: UUID | None = None
    name: str = ""


@dataclass(frozen=True)
class ApprovalDelegation:
    """A user handing their approval authority to another user for a window."""

    id: UUID
    delegator_user_id: UUID
    delegate_user_id: UUID
    starts_at: datetime
    ends_at: datetime | None = None
    is_active: bool = True

    def is_effective_at(self, at: datetime) -> bool:
        if not self.is_active:
            return False
        if self.starts_at > at:
            return False
        if self.ends_at is not None and self.ends_at < at:
            return False
        return True


@dataclass(frozen=True)
class PlacedDesignation:
    """A designation joined with the position, employee and unit it points at.

    This is the row shape ``OrgGraphReader.find_designations`` returns; the
    routing engines rank and filter these without further lookups.
    """

    designation: Designation
    position: Position
    employee: Employee
    unit: Unit | None = None

    @property
    def authority_level(self) -> int:
        return self.position.effective_authority_level

    @property
    def employee_id(self) -> UUID:
        return self.employee.id

    @property
    def user_id(self) -> UUID | None:
        return self.employee.user_id

    @property
    def unit_id(self) -> UUID | None:
        return self.designation.unit_id

    @property
    def sector_id(self) -> UUID | None:
        return self.unit.sector_id if self.unit is not None else None
