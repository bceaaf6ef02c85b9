"""
Module: routing_kernel.selectors.org_graph_selector
Responsibility: SQLAlchemy implementation of ``OrgGraphReader``.  Joins
    designations with their position, employee, linked user account and unit
    and hands back ``PlacedDesignation`` DTOs for the routing services.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - An unconfigured position level compares as DEFAULT_AUTHORITY_LEVEL
      in SQL (COALESCE), matching ``Position.effective_authority_level``.
    - Active means start_date <= as_of <= end_date with NULL open on
      either side.
    - Delegation windows are compared in UTC; naive timestamps read back
      from the store are taken to be UTC.

Failure modes:
    - Absent rows -> None / empty tuple.  Never raises for missing data.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from routing_kernel.domain.org import (
    DEFAULT_AUTHORITY_LEVEL,
    ApprovalDelegation,
    Employee,
    PlacedDesignation,
    Position,
    Unit,
    UserAccount,
)
from routing_kernel.domain.org_graph import DesignationFilter
from routing_kernel.logging_config import get_logger
from routing_kernel.models.org import (
    ApprovalDelegationModel,
    DesignationModel,
    EmployeeModel,
    PositionModel,
    RoleModel,
    UnitModel,
    UserAccountModel,
    user_roles,
)
from routing_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.org_graph")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _active_on(as_of: date):
    return and_(
        or_(DesignationModel.start_date.is_(None), DesignationModel.start_date <= as_of),
        or_(DesignationModel.end_date.is_(None), DesignationModel.end_date >= as_of),
    )


class SqlOrgGraphReader(BaseSelector[DesignationModel]):
    """
    ``OrgGraphReader`` over the org-graph tables.

    Usage:
        with session_scope() as session:
            reader = SqlOrgGraphReader(session)
            placed = reader.get_primary_active_designation(emp_id, today)
    """

    def __init__(self, session: Session):
        super().__init__(session)

    # ------------------------------------------------------------------
    # Single-row lookups
    # ------------------------------------------------------------------

    def get_employee(self, employee_id: UUID) -> Employee | None:
        model = self.session.get(EmployeeModel, employee_id)
        if model is None:
            return None
        return model.to_dto(user_id=self._user_id_for(employee_id))

    def get_user(self, user_id: UUID) -> UserAccount | None:
        model = self.session.get(UserAccountModel, user_id)
        return model.to_dto() if model is not None else None

    def get_unit(self, unit_id: UUID) -> Unit | None:
        model = self.session.get(UnitModel, unit_id)
        return model.to_dto() if model is not None else None

    def get_unit_parent(self, unit_id: UUID) -> Unit | None:
        unit = self.session.get(UnitModel, unit_id)
        if unit is None or unit.parent_unit_id is None:
            return None
        parent = self.session.get(UnitModel, unit.parent_unit_id)
        return parent.to_dto() if parent is not None else None

    def get_units_in_sector(self, sector_id: UUID) -> tuple[Unit, ...]:
        stmt = (
            select(UnitModel)
            .where(UnitModel.sector_id == sector_id)
            .order_by(UnitModel.name, UnitModel.id)
        )
        return tuple(m.to_dto() for m in self.session.scalars(stmt))

    def get_position(self, position_id: UUID) -> Position | None:
        model = self.session.get(PositionModel, position_id)
        return model.to_dto() if model is not None else None

    def role_exists(self, role_id: UUID) -> bool:
        return self.session.get(RoleModel, role_id) is not None

    def user_has_role(self, user_id: UUID, role_id: UUID) -> bool:
        stmt = select(user_roles.c.user_id).where(
            user_roles.c.user_id == user_id,
            user_roles.c.role_id == role_id,
        )
        return self.session.execute(stmt).first() is not None

    # ------------------------------------------------------------------
    # Designations
    # ------------------------------------------------------------------

    def get_primary_active_designation(
        self, employee_id: UUID, as_of: date,
    ) -> PlacedDesignation | None:
        stmt = (
            self._placed_select()
            .where(
                DesignationModel.employee_id == employee_id,
                DesignationModel.is_primary.is_(True),
                _active_on(as_of),
            )
            .order_by(DesignationModel.start_date, DesignationModel.id)
            .limit(1)
        )
        row = self.session.execute(stmt).first()
        return self._to_placed(row) if row is not None else None

    def find_designations(
        self, criteria: DesignationFilter,
    ) -> tuple[PlacedDesignation, ...]:
        stmt = self._placed_select()
        if criteria.unit_id is not None:
            stmt = stmt.where(DesignationModel.unit_id == criteria.unit_id)
        if criteria.unit_ids is not None:
            if not criteria.unit_ids:
                return ()
            stmt = stmt.where(DesignationModel.unit_id.in_(list(criteria.unit_ids)))
        if criteria.position_id is not None:
            stmt = stmt.where(DesignationModel.position_id == criteria.position_id)
        if criteria.system_wide_only:
            stmt = stmt.where(PositionModel.sector_id.is_(None))
        if criteria.min_authority_level is not None:
            stmt = stmt.where(
                func.coalesce(PositionModel.authority_level, DEFAULT_AUTHORITY_LEVEL)
                >= criteria.min_authority_level
            )
        if criteria.primary_only:
            stmt = stmt.where(DesignationModel.is_primary.is_(True))
        if criteria.active_only:
            stmt = stmt.where(_active_on(criteria.as_of))
        stmt = stmt.order_by(DesignationModel.id)

        rows = self.session.execute(stmt).all()
        logger.debug(
            "designations_queried",
            extra={
                "unit_id": str(criteria.unit_id) if criteria.unit_id else None,
                "min_authority_level": criteria.min_authority_level,
                "row_count": len(rows),
            },
        )
        return tuple(self._to_placed(r) for r in rows)

    # ------------------------------------------------------------------
    # Delegations
    # ------------------------------------------------------------------

    def get_active_delegate(self, user_id: UUID, at: datetime) -> UUID | None:
        at_utc = _as_utc(at)
        stmt = (
            select(ApprovalDelegationModel)
            .where(
                ApprovalDelegationModel.delegator_user_id == user_id,
                ApprovalDelegationModel.is_active.is_(True),
            )
            .order_by(ApprovalDelegationModel.starts_at, ApprovalDelegationModel.id)
        )
        for model in self.session.scalars(stmt):
            dto = model.to_dto()
            window = ApprovalDelegation(
                id=dto.id,
                delegator_user_id=dto.delegator_user_id,
                delegate_user_id=dto.delegate_user_id,
                starts_at=_as_utc(dto.starts_at),
                ends_at=_as_utc(dto.ends_at) if dto.ends_at is not None else None,
                is_active=dto.is_active,
            )
            if window.is_effective_at(at_utc):
                return window.delegate_user_id
        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _user_id_for(self, employee_id: UUID) -> UUID | None:
        stmt = select(UserAccountModel.id).where(UserAccountModel.employee_id == employee_id)
        return self.session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _placed_select():
        return (
            select(
                DesignationModel,
                PositionModel,
                EmployeeModel,
                UserAccountModel.id,
                UnitModel,
            )
            .join(PositionModel, PositionModel.id == DesignationModel.position_id)
            .join(EmployeeModel, EmployeeModel.id == DesignationModel.employee_id)
            .outerjoin(UserAccountModel, UserAccountModel.employee_id == EmployeeModel.id)
            .outerjoin(UnitModel, UnitModel.id == DesignationModel.unit_id)
        )

    @staticmethod
    def _to_placed(row) -> PlacedDesignation:
        designation, position, employee, user_id, unit = row
        return PlacedDesignation(
            designation=designation.to_dto(),
            position=position.to_dto(),
            employee=employee.to_dto(user_id=user_id),
            unit=unit.to_dto() if unit is not None else None,
        )
