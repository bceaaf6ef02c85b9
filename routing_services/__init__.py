"""
routing_services -- Stateful-by-injection routing services.

Usage:
    from routing_services import ApproverRoutingService

    service = ApproverRoutingService(reader, config=get_routing_config())
    user_id = service.resolve_next_approver(employee_id)
"""

from routing_services.authority_resolver import AuthorityResolver
from routing_services.cache_invalidation import RoutingCacheInvalidator
from routing_services.chain_builder import ApprovalChainBuilder
from routing_services.delegation import DelegationResolver
from routing_services.routing_service import ApproverRoutingService
from routing_services.slot_resolver import ApprovalSlotResolver

__all__ = [
    "ApprovalChainBuilder",
    "ApprovalSlotResolver",
    "ApproverRoutingService",
    "AuthorityResolver",
    "DelegationResolver",
    "RoutingCacheInvalidator",
]
