"""
Routing configuration schema.

Frozen dataclasses the YAML loader produces.  ``RoutingConfig`` carries
the resolver knobs and the named approval steps; each
``ApprovalStepDefinition`` is an ordered tuple of slots plus optional
allow-lists for position slots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from routing_engines.hierarchy import DEFAULT_MAX_ANCESTOR_DEPTH
from routing_kernel.domain.slots import ApprovalSlot
from routing_kernel.utils.ttl_cache import DEFAULT_TTL_SECONDS


@dataclass(frozen=True)
class ApprovalStepDefinition:
    """A named approval step and the slots that supply its approvers."""

    name: str
    slots: tuple[ApprovalSlot, ...] = ()
    sector_allow_list: frozenset[UUID] | None = None
    unit_allow_list: frozenset[UUID] | None = None


@dataclass(frozen=True)
class RoutingConfig:
    """Resolver settings plus the step catalogue."""

    cache_ttl_seconds: int = DEFAULT_TTL_SECONDS
    max_ancestor_depth: int = DEFAULT_MAX_ANCESTOR_DEPTH
    peer_escalation: bool = True
    apply_delegations: bool = True
    steps: dict[str, ApprovalStepDefinition] = field(default_factory=dict)
    checksum: str = ""

    def step(self, name: str) -> ApprovalStepDefinition | None:
        return self.steps.get(name)

    @property
    def step_names(self) -> tuple[str, ...]:
        return tuple(sorted(self.steps))
