"""Redis-backed window counter store.

Counters are shared by every worker and host pointing at the same Redis, so
the configured limits hold across the whole deployment.

The increment runs inside a MULTI/EXEC transaction:

    SET <current> 0 EX <ttl> NX   # create with expiry only if absent
    INCR <current>                # keeps the expiry set above
    GET <previous>

Redis executes the queued commands back to back, so two callers sharing a
key always observe distinct post-increment values.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

import redis
from redis.exceptions import RedisError

from admission.adapters.counter_store.base import (
    AbstractCounterStore,
    StoreOutcome,
    StoreReached,
    StoreUnreachable,
)

logger = logging.getLogger(__name__)


class RedisCounterStore(AbstractCounterStore):
    """Counter store using atomic Redis counters with TTL expiry.

    Latency is bounded by the client's socket timeouts; a timeout surfaces
    as ``StoreUnreachable`` like any other connection failure.
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._clock = clock

    def increment_window(
        self,
        current_key: str,
        previous_key: str,
        *,
        expire_at: float,
    ) -> StoreOutcome:
        ttl_seconds = max(1, math.ceil(expire_at - self._clock()))

        try:
            with self._client.pipeline(transaction=True) as pipe:
                pipe.set(current_key, 0, ex=ttl_seconds, nx=True)
                pipe.incr(current_key)
                pipe.get(previous_key)
                _, current, previous = pipe.execute()
        except RedisError as exc:
            return StoreUnreachable(cause=exc)

        return StoreReached(
            current=int(current),
            previous=int(previous) if previous is not None else 0,
        )

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except RedisError as exc:
            logger.debug(
                "counter_store.ping_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return False
