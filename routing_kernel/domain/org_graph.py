"""
Org-graph reader interface (``routing_kernel.domain.org_graph``).

Responsibility
--------------
``OrgGraphReader`` is the read-only port through which routing code sees
the org structure.  The SQLAlchemy-backed implementation lives in
``routing_kernel.selectors.org_graph_selector``; ``InMemoryOrgGraph``
below implements the same protocol over plain dicts for tests, previews
and callers that already hold a snapshot.

Architecture position
---------------------
**Kernel domain layer** -- protocol plus a pure in-memory implementation.
ZERO I/O.

Invariants enforced
-------------------
* Readers never mutate and never raise on absent data -- lookups return
  None / empty tuples.
* ``find_designations`` applies every filter field it is given; callers
  rely on ``active_only`` and ``primary_only`` being honoured by the reader.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from routing_kernel.domain.org import (
    ApprovalDelegation,
    Designation,
    Employee,
    PlacedDesignation,
    Position,
    Sector,
    Unit,
    UserAccount,
)


@dataclass(frozen=True)
class DesignationFilter:
    """Query shape for ``OrgGraphReader.find_designations``.

    Unit scoping: ``unit_id`` for one unit, ``unit_ids`` for a set (both
    may be given; a row must satisfy both).  ``system_wide_only`` keeps
    designations whose position has no sector.  ``active_only`` needs
    ``as_of``.
    """

    unit_id: UUID | None = None
    unit_ids: frozenset[UUID] | None = None
    position_id: UUID | None = None
    system_wide_only: bool = False
    min_authority_level: int | None = None
    active_only: bool = True
    primary_only: bool = False
    as_of: date | None = None

    def __post_init__(self) -> None:
        if self.active_only and self.as_of is None:
            raise ValueError("DesignationFilter(active_only=True) requires as_of")


class OrgGraphReader(Protocol):
    """Read-only access to sectors, units, positions and designations."""

    def get_employee(self, employee_id: UUID) -> Employee | None:
        ...

    def get_user(self, user_id: UUID) -> UserAccount | None:
        ...

    def get_unit(self, unit_id: UUID) -> Unit | None:
        ...

    def get_unit_parent(self, unit_id: UUID) -> Unit | None:
        """Return the parent of ``unit_id`` or None at a root / unknown unit."""
        ...

    def get_units_in_sector(self, sector_id: UUID) -> tuple[Unit, ...]:
        ...

    def get_position(self, position_id: UUID) -> Position | None:
        ...

    def role_exists(self, role_id: UUID) -> bool:
        ...

    def user_has_role(self, user_id: UUID, role_id: UUID) -> bool:
        ...

    def get_primary_active_designation(
        self, employee_id: UUID, as_of: date,
    ) -> PlacedDesignation | None:
        ...

    def find_designations(
        self, criteria: DesignationFilter,
    ) -> tuple[PlacedDesignation, ...]:
        ...

    def get_active_delegate(self, user_id: UUID, at: datetime) -> UUID | None:
        """Return the delegate user for ``user_id`` effective at ``at``."""
        ...


def matches_filter(placed: PlacedDesignation, criteria: DesignationFilter) -> bool:
    """Apply a ``DesignationFilter`` to one joined designation row."""
    d = placed.designation
    if criteria.unit_id is not None and d.unit_id != criteria.unit_id:
        return False
    if criteria.unit_ids is not None and d.unit_id not in criteria.unit_ids:
        return False
    if criteria.position_id is not None and d.position_id != criteria.position_id:
        return False
    if criteria.system_wide_only and not placed.position.is_system_wide:
        return False
    if (
        criteria.min_authority_level is not None
        and placed.authority_level < criteria.min_authority_level
    ):
        return False
    if criteria.primary_only and not d.is_primary:
        return False
    if criteria.active_only and not d.is_active_on(criteria.as_of):
        return False
    return True


class InMemoryOrgGraph:
    """Dict-backed ``OrgGraphReader``.

    Builder methods (``add_*``) return the stored value so fixtures can
    chain them.  Designations come back in insertion order.
    """

    def __init__(self) -> None:
        self.sectors: dict[UUID, Sector] = {}
        self.units: dict[UUID, Unit] = {}
        self.positions: dict[UUID, Position] = {}
        self.employees: dict[UUID, Employee] = {}
        self.users: dict[UUID, UserAccount] = {}
        self.designations: dict[UUID, Designation] = {}
        self.roles: dict[UUID, str] = {}
        self.user_roles: dict[UUID, set[UUID]] = {}
        self.delegations: list[ApprovalDelegation] = []

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def add_sector(self, sector: Sector) -> Sector:
        self.sectors[sector.id] = sector
        return sector

    def add_unit(self, unit: Unit) -> Unit:
        self.units[unit.id] = unit
        return unit

    def add_position(self, position: Position) -> Position:
        self.positions[position.id] = position
        return position

    def add_employee(self, employee: Employee) -> Employee:
        self.employees[employee.id] = employee
        if employee.user_id is not None and employee.user_id not in self.users:
            self.users[employee.user_id] = UserAccount(
                id=employee.user_id, employee_id=employee.id, name=employee.name,
            )
        return employee

    def add_user(self, user: UserAccount) -> UserAccount:
        self.users[user.id] = user
        return user

    def add_designation(self, designation: Designation) -> Designation:
        self.designations[designation.id] = designation
        return designation

    def add_role(self, role_id: UUID, name: str = "") -> UUID:
        self.roles[role_id] = name
        return role_id

    def grant_role(self, user_id: UUID, role_id: UUID) -> None:
        self.user_roles.setdefault(user_id, set()).add(role_id)

    def add_delegation(self, delegation: ApprovalDelegation) -> ApprovalDelegation:
        self.delegations.append(delegation)
        return delegation

    # ------------------------------------------------------------------
    # OrgGraphReader
    # ------------------------------------------------------------------

    def get_employee(self, employee_id: UUID) -> Employee | None:
        return self.employees.get(employee_id)

    def get_user(self, user_id: UUID) -> UserAccount | None:
        return self.users.get(user_id)

    def get_unit(self, unit_id: UUID) -> Unit | None:
        return self.units.get(unit_id)

    def get_unit_parent(self, unit_id: UUID) -> Unit | None:
        unit = self.units.get(unit_id)
        if unit is None or unit.parent_unit_id is None:
            return None
        return self.units.get(unit.parent_unit_id)

    def get_units_in_sector(self, sector_id: UUID) -> tuple[Unit, ...]:
        return tuple(u for u in self.units.values() if u.sector_id == sector_id)

    def get_position(self, position_id: UUID) -> Position | None:
        return self.positions.get(position_id)

    def role_exists(self, role_id: UUID) -> bool:
        return role_id in self.roles

    def user_has_role(self, user_id: UUID, role_id: UUID) -> bool:
        return role_id in self.user_roles.get(user_id, set())

    def get_primary_active_designation(
        self, employee_id: UUID, as_of: date,
    ) -> PlacedDesignation | None:
        for d in self.designations.values():
            if d.employee_id != employee_id or not d.is_primary:
                continue
            if not d.is_active_on(as_of):
                continue
            placed = self._place(d)
            if placed is not None:
                return placed
        return None

    def find_designations(
        self, criteria: DesignationFilter,
    ) -> tuple[PlacedDesignation, ...]:
        rows: list[PlacedDesignation] = []
        for d in self.designations.values():
            placed = self._place(d)
            if placed is not None and matches_filter(placed, criteria):
                rows.append(placed)
        return tuple(rows)

    def get_active_delegate(self, user_id: UUID, at: datetime) -> UUID | None:
        for delegation in self.delegations:
            if delegation.delegator_user_id == user_id and delegation.is_effective_at(at):
                return delegation.delegate_user_id
        return None

    def _place(self, d: Designation) -> PlacedDesignation | None:
        position = self.positions.get(d.position_id)
        employee = self.employees.get(d.employee_id)
        if position is None or employee is None:
            return None
        unit = self.units.get(d.unit_id) if d.unit_id is not None else None
        return PlacedDesignation(
            designation=d, position=position, employee=employee, unit=unit,
        )
