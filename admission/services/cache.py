"""Read-through cache: Redis first, process-local TTL cache second.

Every Redis failure is logged at warning level and treated as a miss, so a
cache outage costs latency (the fetcher runs) but never an error. When Redis
refuses a write, the value is kept in the local cache instead.

Values are JSON-serialised in Redis; only JSON-compatible values can be
cached.
"""

from __future__ import annotations

import fnmatch
import json
import logging
from typing import Any, Callable, TypeVar

import redis
from redis.exceptions import RedisError

from admission.adapters.redis_client import get_redis_client
from admission.core.config import settings
from admission.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheTTL:
    """TTL values in seconds."""

    TIERS = 3600


class CacheKeys:
    """Namespaced cache keys, disjoint from rate limit counter keys."""

    NAMESPACE = "cache"
    TIERS = f"{NAMESPACE}:tiers"


class ReadThroughCache:
    """Two-level cache wrapping expensive computations behind a key and TTL."""

    def __init__(
        self,
        client: redis.Redis | None,
        *,
        local: SimpleTTLCache | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            client: Redis client, or None to use the local cache only.
            local: Process-local fallback cache.
        """
        self._client = client
        self._local = local if local is not None else SimpleTTLCache()

    def _warn(self, event: str, key: str, exc: RedisError) -> None:
        logger.warning(
            event,
            extra={
                "cache_key": key,
                "error_type": type(exc).__name__,
                "error_msg": str(exc),
            },
        )

    def get(self, key: str) -> Any | None:
        """Return the value from Redis, else from the local cache, else None."""

        if self._client is not None:
            try:
                raw = self._client.get(key)
            except RedisError as exc:
                self._warn("cache.get_failed", key, exc)
            else:
                if raw is not None:
                    logger.debug("cache.hit", extra={"cache_key": key, "level_hit": "redis"})
                    return json.loads(raw)

        value = self._local.get(key)
        if value is not None:
            logger.debug("cache.hit", extra={"cache_key": key, "level_hit": "local"})
        return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store ``value`` in Redis, or locally when Redis is unavailable."""

        if self._client is not None:
            try:
                self._client.set(key, json.dumps(value), ex=ttl_seconds)
                return
            except RedisError as exc:
                self._warn("cache.set_failed", key, exc)

        self._local.set(key, value, ttl_seconds)

    def delete(self, key: str) -> None:
        self._local.delete(key)
        if self._client is None:
            return
        try:
            self._client.delete(key)
        except RedisError as exc:
            self._warn("cache.delete_failed", key, exc)

    def invalidate_pattern(self, pattern: str) -> None:
        """Delete every key matching a glob-style ``pattern`` in both levels."""

        for key in self._local.keys():
            if fnmatch.fnmatchcase(key, pattern):
                self._local.delete(key)

        if self._client is None:
            return
        try:
            keys = list(self._client.scan_iter(match=pattern))
            if keys:
                self._client.delete(*keys)
        except RedisError as exc:
            self._warn("cache.invalidate_failed", pattern, exc)

    def get_or_fetch(self, key: str, ttl_seconds: int, fetcher: Callable[[], T]) -> T:
        """Return the cached value for ``key`` or compute, store and return it.

        Exceptions raised by ``fetcher`` propagate; nothing is cached then.
        """

        cached = self.get(key)
        if cached is not None:
            return cached

        logger.debug("cache.miss", extra={"cache_key": key})
        value = fetcher()
        self.set(key, value, ttl_seconds)
        return value


_cache: ReadThroughCache | None = None


def get_read_through_cache() -> ReadThroughCache:
    """Return the process-wide cache, building it from settings on first use."""

    global _cache

    if _cache is None:
        client = get_redis_client() if settings.cache.enabled else None
        _cache = ReadThroughCache(
            client,
            local=SimpleTTLCache(max_entries=settings.cache.local_max_entries),
        )
    return _cache


def set_read_through_cache(cache: ReadThroughCache | None) -> None:
    """Replace the process-wide cache (``None`` rebuilds it from settings)."""

    global _cache
    _cache = cache
