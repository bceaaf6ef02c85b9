"""
routing_services.routing_service -- Approval routing facade.

Responsibility:
    The entry point callers use to route an approval:

        resolve_next_approver(requester, min_level)   -> user id or None
        resolve_step_approvers(slots, requester, ...) -> list[ResolvedApprover]
        resolve_step(step_name, requester)            -> list[ResolvedApprover]
        preview_chain(requester)                      -> list[ResolvedApprover]

    Wires reader, cache, clock and ``RoutingConfig`` into the authority
    search, slot resolution, delegation and chain preview services.

Architecture position:
    Services layer, outermost.  Owns no state beyond the injected cache.

Failure modes:
    - Unknown ``step_name`` -> UnknownApprovalStepError.
    - Out-of-range explicit ``min_authority_level`` ->
      InvalidAuthorityLevelError.
    - Everything else (nobody found, broken slots) is a value, not an error.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from uuid import UUID

from routing_config.schema import RoutingConfig
from routing_kernel.domain.clock import Clock, SystemClock
from routing_kernel.domain.org_graph import OrgGraphReader
from routing_kernel.domain.resolution import ResolvedApprover
from routing_kernel.domain.slots import ApprovalSlot
from routing_kernel.exceptions import UnknownApprovalStepError
from routing_kernel.logging_config import LogContext, get_logger
from routing_kernel.utils.ttl_cache import RoutingCache, TTLCache
from routing_services.authority_resolver import AuthorityResolver
from routing_services.cache_invalidation import RoutingCacheInvalidator
from routing_services.chain_builder import ApprovalChainBuilder
from routing_services.delegation import DelegationResolver
from routing_services.slot_resolver import ApprovalSlotResolver

logger = get_logger("services.routing")


class ApproverRoutingService:
    """Facade over the routing services for one org-graph reader."""

    def __init__(
        self,
        reader: OrgGraphReader,
        config: RoutingConfig | None = None,
        cache: RoutingCache | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._config = config or RoutingConfig()
        self._clock = clock or SystemClock()
        self._cache = cache if cache is not None else TTLCache(
            ttl_seconds=self._config.cache_ttl_seconds, clock=self._clock,
        )
        self.authority = AuthorityResolver(
            reader,
            cache=self._cache,
            clock=self._clock,
            max_ancestor_depth=self._config.max_ancestor_depth,
        )
        self.slots = ApprovalSlotResolver(
            reader,
            self.authority,
            clock=self._clock,
            peer_escalation=self._config.peer_escalation,
        )
        self.delegations = DelegationResolver(reader, clock=self._clock)
        self.chain = ApprovalChainBuilder(self.authority)
        self.invalidator = RoutingCacheInvalidator(self._cache, reader)

    @property
    def config(self) -> RoutingConfig:
        return self._config

    def resolve_next_approver(
        self,
        requester_employee_id: UUID,
        min_authority_level: int | None = None,
        *,
        use_cache: bool = True,
    ) -> UUID | None:
        """User id of the nearest-above approver, or None."""
        with LogContext.bind(requester_id=str(requester_employee_id)):
            hit = self.authority.find_approver(
                requester_employee_id, min_authority_level, use_cache=use_cache,
            )
            if hit is None:
                return None
            if self._config.apply_delegations:
                delegated = self.delegations.apply([hit], requester_employee_id)
                return delegated[0].user_id
            return hit.user_id

    def resolve_step_approvers(
        self,
        slots: Sequence[ApprovalSlot],
        requester_employee_id: UUID,
        sector_allow_list: Collection[UUID] | None = None,
        unit_allow_list: Collection[UUID] | None = None,
    ) -> list[ResolvedApprover]:
        """Expand an ad-hoc list of slots for ``requester_employee_id``."""
        with LogContext.bind(requester_id=str(requester_employee_id)):
            approvers = self.slots.resolve(
                slots,
                requester_employee_id,
                sector_filter=sector_allow_list,
                unit_filter=unit_allow_list,
            )
            if self._config.apply_delegations:
                approvers = self.delegations.apply(approvers, requester_employee_id)
            return approvers

    def resolve_step(
        self,
        step_name: str,
        requester_employee_id: UUID,
    ) -> list[ResolvedApprover]:
        """Resolve a step defined in the routing configuration."""
        step = self._config.step(step_name)
        if step is None:
            raise UnknownApprovalStepError(step_name, self._config.step_names)
        with LogContext.bind(step_name=step_name):
            approvers = self.resolve_step_approvers(
                step.slots,
                requester_employee_id,
                sector_allow_list=step.sector_allow_list,
                unit_allow_list=step.unit_allow_list,
            )
            logger.info(
                "approval_step_resolved",
                extra={
                    "step_name": step_name,
                    "resolved": sum(1 for a in approvers if a.is_resolved),
                    "unresolved": sum(1 for a in approvers if not a.is_resolved),
                },
            )
            return approvers

    def preview_chain(self, requester_employee_id: UUID) -> list[ResolvedApprover]:
        """Informational chain of everyone above the requester."""
        with LogContext.bind(requester_id=str(requester_employee_id)):
            return self.chain.build_chain(requester_employee_id)

    def on_designation_changed(
        self,
        employee_id: UUID,
        unit_id: UUID | None = None,
    ) -> int:
        return self.invalidator.on_designation_changed(employee_id, unit_id)
