"""
Module: routing_kernel.models.org
Responsibility: ORM persistence for the organization graph the approval
    router reads: sectors, units, positions, employees, user accounts,
    roles, employee designations and approval delegations.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/org.py (for ``to_dto``).  MUST NOT import from selectors/ or
    outer layers.

Invariants enforced:
    - positions.authority_level is NULL or within 0..100
      (ck_position_authority_level).
    - A user account links to at most one employee (uq_user_employee).
    - A unit's parent is another unit row (self-referential FK); the schema
      does NOT prevent cycles, so readers must walk parents defensively.

Failure modes:
    - IntegrityError on an out-of-range authority level or a second user
      account for the same employee.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from routing_kernel.db.base import Base, UUIDString
from routing_kernel.domain.org import (
    ApprovalDelegation,
    Designation,
    Employee,
    Position,
    Sector,
    Unit,
    UserAccount,
)


class SectorModel(Base):
    """Top-level org partition."""

    __tablename__ = "sectors"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def to_dto(self) -> Sector:
        return Sector(id=self.id, name=self.name)


class UnitModel(Base):
    """
    A unit within a sector's forest.

    Guarantees:
        - sector_id is always set.
        - parent_unit_id is NULL for a root unit.
    """

    __tablename__ = "units"

    __table_args__ = (
        Index("idx_unit_sector", "sector_id"),
        Index("idx_unit_parent", "parent_unit_id"),
    )

    sector_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("sectors.id"),
        nullable=False,
    )

    parent_unit_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("units.id"),
        nullable=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_dto(self) -> Unit:
        return Unit(
            id=self.id,
            sector_id=self.sector_id,
            parent_unit_id=self.parent_unit_id,
            name=self.name,
            is_active=self.is_active,
        )


class PositionModel(Base):
    """A job position.  NULL sector_id marks a system-wide position."""

    __tablename__ = "positions"

    __table_args__ = (
        CheckConstraint(
            "authority_level IS NULL OR (authority_level >= 0 AND authority_level <= 100)",
            name="ck_position_authority_level",
        ),
        Index("idx_position_sector", "sector_id"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    sector_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("sectors.id"),
        nullable=True,
    )

    # NULL = unconfigured; treated as the default level by readers
    authority_level: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def to_dto(self) -> Position:
        return Position(
            id=self.id,
            authority_level=self.authority_level,
            sector_id=self.sector_id,
            name=self.name,
        )


class EmployeeModel(Base):
    """An employee.  The login link lives on ``UserAccountModel``."""

    __tablename__ = "employees"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def to_dto(self, user_id: UUID | None = None) -> Employee:
        return Employee(id=self.id, name=self.name, user_id=user_id)


class UserAccountModel(Base):
    """A login identity, optionally linked to one employee."""

    __tablename__ = "users"

    __table_args__ = (
        UniqueConstraint("employee_id", name="uq_user_employee"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    employee_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("employees.id"),
        nullable=True,
    )

    def to_dto(self) -> UserAccount:
        return UserAccount(id=self.id, employee_id=self.employee_id, name=self.name)


class RoleModel(Base):
    """A named permission group."""

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", UUIDString(), ForeignKey("users.id"), primary_key=True),
    Column("role_id", UUIDString(), ForeignKey("roles.id"), primary_key=True),
)


class DesignationModel(Base):
    """
    An employee's assignment to a unit and position over a date window.

    Guarantees:
        - start_date/end_date NULL means open on that side.
        - At most one *active primary* designation per employee is expected;
          the schema does not enforce it and readers take the first by
          start date.
    """

    __tablename__ = "employee_designations"

    __table_args__ = (
        Index("idx_designation_employee", "employee_id"),
        Index("idx_designation_unit", "unit_id"),
        Index("idx_designation_position", "position_id"),
    )

    employee_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("employees.id"),
        nullable=False,
    )

    position_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("positions.id"),
        nullable=False,
    )

    unit_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("units.id"),
        nullable=True,
    )

    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def to_dto(self) -> Designation:
        return Designation(
            id=self.id,
            employee_id=self.employee_id,
            position_id=self.position_id,
            unit_id=self.unit_id,
            is_primary=self.is_primary,
            start_date=self.start_date,
            end_date=self.end_date,
        )


class ApprovalDelegationModel(Base):
    """A user's approval authority handed to another user for a window."""

    __tablename__ = "approval_delegations"

    __table_args__ = (
        Index("idx_delegation_delegator", "delegator_user_id"),
    )

    delegator_user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=False,
    )

    delegate_user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=False,
    )

    starts_at: Mapped[datetime] = mapped_column(nullable=False)

    ends_at: Mapped[datetime | None] = mapped_column(nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_dto(self) -> ApprovalDelegation:
        return ApprovalDelegation(
            id=self.id,
            delegator_user_id=self.delegator_user_id,
            delegate_user_id=self.delegate_user_id,
            starts_at=self.starts_at,
            ends_at=self.ends_at,
            is_active=self.is_active,
        )
