"""Process-local TTL cache with LRU eviction.

Fallback tier of the read-through cache: thread-safe, no dependencies, and
every entry carries its own TTL.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CacheItem:
    """Container for cached values with expiration metadata."""

    value: Any
    expires_at: float


class SimpleTTLCache:
    """Thread-safe, in-memory TTL cache with LRU eviction.

    Attributes:
        max_entries: Maximum number of cached items (None for unlimited).
    """

    def __init__(self, max_entries: int | None = 1024) -> None:
        self._max_entries = max_entries
        self._store: OrderedDict[str, CacheItem] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"SimpleTTLCache(max_entries={self._max_entries}, "
            f"size={len(self._store)}, hits={self._hits}, misses={self._misses}, "
            f"evictions={self._evictions})"
        )

    def get(self, key: str) -> Any | None:
        """Retrieve a cached value if it exists and is not expired.

        Args:
            key: Cache key.

        Returns:
            Cached value or None if not found/expired.
        """

        with self._lock:
            item = self._store.get(key)
            if item is None:
                self._misses += 1
                return None

            if self._is_expired(item):
                self._evict_single(key)
                self._misses += 1
                logger.debug("cache.local_expired", extra={"cache_key": key})
                return None

            self._hits += 1
            self._store.move_to_end(key)
            return item.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value for ``ttl_seconds``, evicting as needed."""

        with self._lock:
            self._evict_expired_locked()
            self._store[key] = CacheItem(value=value, expires_at=time.time() + ttl_seconds)
            self._store.move_to_end(key)
            self._evict_if_over_capacity_locked()

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._store.keys())

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int | None]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _evict_single(self, key: str) -> None:
        if key in self._store:
            self._store.pop(key, None)
            self._evictions += 1

    def _evict_expired_locked(self) -> None:
        now = time.time()
        expired_keys = [k for k, item in self._store.items() if item.expires_at <= now]
        for key in expired_keys:
            self._evict_single(key)

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return

        while len(self._store) > self._max_entries:
            # least recently used first
            self._store.popitem(last=False)
            self._evictions += 1

    def _is_expired(self, item: CacheItem) -> bool:
        return time.time() > item.expires_at
