"""
TTL memo cache for routing lookups.

Routing results are memoised per ``approval_next:{requester}:{level|auto}``
for a few minutes.  Entries are computed independently and idempotently,
so the only locking needed is around the dict itself; two threads
computing the same key at once both store the same value.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, Protocol, TypeVar
from uuid import UUID

from routing_kernel.domain.clock import Clock, SystemClock

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 300


class RoutingCache(Protocol):
    """What the resolvers need from a cache."""

    def get(self, key: str) -> Any | None:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def delete_prefix(self, prefix: str) -> int:
        ...

    def clear(self) -> None:
        ...


def next_approver_key(requester_id: UUID, min_level: int | None) -> str:
    """Cache key for a single-pick authority search."""
    level = "auto" if min_level is None else str(min_level)
    return f"approval_next:{requester_id}:{level}"


def requester_key_prefix(requester_id: UUID) -> str:
    """Prefix covering every cached level for one requester."""
    return f"approval_next:{requester_id}:"


class TTLCache:
    """In-process ``RoutingCache`` with per-entry expiry."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Clock | None = None,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock or SystemClock()
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired()
            return len(self._entries)

    def get(self, key: str) -> Any | None:
        now = self._clock.monotonic()
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            expires_at, value = item
            if expires_at <= now:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        expires_at = self._clock.monotonic() + self.ttl_seconds
        with self._lock:
            self._entries[key] = (expires_at, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict_expired(self) -> None:
        now = self._clock.monotonic()
        for k in [k for k, (exp, _) in self._entries.items() if exp <= now]:
            del self._entries[k]


def get_or_compute(
    cache: RoutingCache,
    key: str,
    compute: Callable[[], T | None],
) -> T | None:
    """Return the cached value or compute it.

    None results are not stored: an approver added after a miss is visible
    on the next call rather than after the TTL.
    """
    cached = cache.get(key)
    if cached is not None:
        return cached
    value = compute()
    if value is not None:
        cache.set(key, value)
    return value
