"""ORM models for the org graph.  Importing this package registers every table."""

from routing_kernel.models.org import (
    ApprovalDelegationModel,
    DesignationModel,
    EmployeeModel,
    PositionModel,
    RoleModel,
    SectorModel,
    UnitModel,
    UserAccountModel,
    user_roles,
)

__all__ = [
    "ApprovalDelegationModel",
    "DesignationModel",
    "EmployeeModel",
    "PositionModel",
    "RoleModel",
    "SectorModel",
    "UnitModel",
    "UserAccountModel",
    "user_roles",
]
