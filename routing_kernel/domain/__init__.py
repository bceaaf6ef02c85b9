"""
Pure domain layer.

Value objects and protocols with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Wall-clock time (injected via Clock)
- I/O

All domain objects are immutable and deterministic.
"""

from routing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from routing_kernel.domain.org import (
    DEFAULT_AUTHORITY_LEVEL,
    MAX_AUTHORITY_LEVEL,
    MIN_AUTHORITY_LEVEL,
    ApprovalDelegation,
    Designation,
    Employee,
    PlacedDesignation,
    Position,
    Sector,
    Unit,
    UserAccount,
    validate_authority_level,
)
from routing_kernel.domain.org_graph import (
    DesignationFilter,
    InMemoryOrgGraph,
    OrgGraphReader,
)
from routing_kernel.domain.resolution import (
    STRATEGY_ORDER,
    EscalationReason,
    ResolvedApprover,
    SearchStrategy,
    UnresolvedReason,
)
from routing_kernel.domain.slots import (
    ApprovalSlot,
    HierarchicalSlot,
    PositionSlot,
    RoleSlot,
    SlotKind,
    UserSlot,
    parse_slot,
    slot_to_dict,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "DEFAULT_AUTHORITY_LEVEL",
    "MAX_AUTHORITY_LEVEL",
    "MIN_AUTHORITY_LEVEL",
    "ApprovalDelegation",
    "Designation",
    "Employee",
    "PlacedDesignation",
    "Position",
    "Sector",
    "Unit",
    "UserAccount",
    "validate_authority_level",
    "DesignationFilter",
    "InMemoryOrgGraph",
    "OrgGraphReader",
    "STRATEGY_ORDER",
    "EscalationReason",
    "ResolvedApprover",
    "SearchStrategy",
    "UnresolvedReason",
    "ApprovalSlot",
    "HierarchicalSlot",
    "PositionSlot",
    "RoleSlot",
    "SlotKind",
    "UserSlot",
    "parse_slot",
    "slot_to_dict",
]
