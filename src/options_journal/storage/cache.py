"""Short-lived in-memory caches for expensive analytics responses.

Entries are keyed by ``(user_id, *request_parts)`` so that a single
user's entries can be dropped when that user writes a trade.  Caches are
plain objects owned by the application; nothing here is global.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable

from options_journal.core.config import CacheConfig

CacheKey = tuple[Hashable, ...]


class TTLCache:
    """Map with a fixed time-to-live per entry.

    Parameters
    ----------
    ttl_seconds : float
        Lifetime of each entry from the moment it is set.
    clock : callable, optional
        Monotonic time source (seconds).  Defaults to
        :func:`time.monotonic`.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, tuple[float, Any]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: CacheKey) -> Any | None:
        """Return the cached value, or ``None`` if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return value

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = (self._clock() + self.ttl, value)

    def delete(self, key: CacheKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def clear_user(self, user_id: int) -> int:
        """Drop every entry whose key starts with ``user_id``.  Returns the count."""
        stale = [k for k in self._entries if k and k[0] == user_id]
        for key in stale:
            del self._entries[key]
        return len(stale)


@dataclass
class CacheSet:
    """The three analytics caches, grouped by how quickly their data goes stale."""

    summary: TTLCache
    trend: TTLCache
    static: TTLCache
    enabled: bool = True

    @classmethod
    def from_config(cls, config: CacheConfig) -> CacheSet:
        return cls(
            summary=TTLCache(config.summary_ttl_seconds),
            trend=TTLCache(config.trend_ttl_seconds),
            static=TTLCache(config.static_ttl_seconds),
            enabled=config.enabled,
        )

    def clear_user(self, user_id: int) -> None:
        for cache in (self.summary, self.trend, self.static):
            cache.clear_user(user_id)
