"""Utility functions for the routing kernel."""

from routing_kernel.utils.ttl_cache import (
    DEFAULT_TTL_SECONDS,
    RoutingCache,
    TTLCache,
    get_or_compute,
    next_approver_key,
    requester_key_prefix,
)

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "RoutingCache",
    "TTLCache",
    "get_or_compute",
    "next_approver_key",
    "requester_key_prefix",
]
