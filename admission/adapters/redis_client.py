"""Shared Redis client construction."""

from __future__ import annotations

import redis

from admission.core.config import RedisSettings, settings

_client: redis.Redis | None = None


def create_redis_client(redis_settings: RedisSettings | None = None) -> redis.Redis:
    """Create a Redis client with bounded socket timeouts.

    No connection is opened here; the pool connects lazily on first use, so
    an unavailable Redis does not prevent the application from starting.

    Args:
        redis_settings: Connection settings; defaults to global settings.

    Returns:
        Configured Redis client returning ``str`` values.
    """

    cfg = redis_settings or settings.redis
    return redis.Redis.from_url(
        cfg.url,
        socket_timeout=cfg.socket_timeout_seconds,
        socket_connect_timeout=cfg.connect_timeout_seconds,
        decode_responses=True,
    )


def get_redis_client() -> redis.Redis:
    """Return the process-wide Redis client, creating it on first use."""

    global _client

    if _client is None:
        _client = create_redis_client()
    return _client
