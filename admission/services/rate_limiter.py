"""Tiered sliding-window rate limiter.

Algorithm: sliding window counter. Each ``(tier, identity)`` pair keeps one
counter per fixed bucket of ``window_seconds``. A check increments the
current bucket and weights the previous bucket by the share of it that still
overlaps the trailing window:

    count = floor(previous * (1 - elapsed / window)) + current

where ``elapsed`` is the time since the current bucket started. This assumes
requests in the previous bucket were evenly spread, which bounds the error
to a fraction of one bucket while costing two counters per key instead of
a per-request log.

Rejected requests are counted too: the increment happens before the
decision, in a single store operation, so concurrent callers can never both
spend the same remaining budget.

Degradation: when the counter store is unreachable or times out, the check
fails open. The request is allowed, a sentinel limit is reported, and a
warning is logged. Enforcement pauses; the protected service stays up.
"""

from __future__ import annotations

import hashlib
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

from admission.adapters.counter_store.base import (
    AbstractCounterStore,
    StoreOutcome,
    StoreReached,
    StoreUnreachable,
)
from admission.core.tiers import DEFAULT_TIERS, Tier, TierPolicy, TierTable

logger = logging.getLogger(__name__)

DEFAULT_FAIL_OPEN_LIMIT = 999


@dataclass(frozen=True)
class Decision:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window for the tier (sentinel when degraded).
        remaining: Requests left in the trailing window (0 when blocked).
        reset_at: UNIX epoch seconds after which the budget is restored.
        degraded: True when the decision was made without the counter store.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    degraded: bool = False

    def retry_after_seconds(self, now: float) -> int:
        """Whole seconds until ``reset_at``, never negative."""
        return max(0, int(math.ceil(self.reset_at - now)))


def hash_identity(identity: str) -> str:
    """Hash an identity for logging without exposing client addresses."""
    return hashlib.sha256(identity.encode()).hexdigest()[:16]


class TieredRateLimiter:
    """Admission control across a fixed set of tiers.

    The tier table is injected and never mutated. The limiter itself holds
    no per-key state; all counters live in the counter store.
    """

    def __init__(
        self,
        store: AbstractCounterStore,
        *,
        tiers: TierTable = DEFAULT_TIERS,
        key_prefix: str = "ratelimit",
        fail_open_limit: int = DEFAULT_FAIL_OPEN_LIMIT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Shared counter store.
            tiers: Policy for every tier.
            key_prefix: Namespace for counter keys.
            fail_open_limit: Limit and remaining reported while degraded.
            clock: Time source function returning UNIX time in seconds.
        """
        self._store = store
        self._tiers = tiers
        self._key_prefix = key_prefix
        self._fail_open_limit = fail_open_limit
        self._clock = clock

    @property
    def tiers(self) -> TierTable:
        return self._tiers

    def policy(self, tier: Tier) -> TierPolicy:
        return self._tiers[tier]

    def now(self) -> float:
        """Current time on the limiter's clock."""
        return self._clock()

    def store_available(self) -> bool:
        return self._store.ping()

    def _key(self, tier: Tier, identity: str, bucket: int) -> str:
        return f"{self._key_prefix}:{tier.value}:{identity}:{bucket}"

    def check(self, identity: str, tier: Tier) -> Decision:
        """Count one request for ``identity`` under ``tier`` and decide.

        Args:
            identity: Client identity from ``resolve_identity``.
            tier: Endpoint class of the request.

        Returns:
            Decision for this request. Never raises for store failures.
        """
        policy = self._tiers[tier]
        window = policy.window_seconds
        now = self._clock()

        bucket = int(now // window)
        bucket_start = bucket * window
        # The current bucket still weighs on checks until the next one ends
        expire_at = float(bucket_start + 2 * window)

        outcome: StoreOutcome = self._store.increment_window(
            self._key(tier, identity, bucket),
            self._key(tier, identity, bucket - 1),
            expire_at=expire_at,
        )

        if isinstance(outcome, StoreUnreachable):
            return self._fail_open(identity, tier, now=now, cause=outcome.cause)

        return self._decide(
            outcome,
            policy,
            now=now,
            bucket_start=bucket_start,
            reset_at=expire_at,
        )

    def _decide(
        self,
        counts: StoreReached,
        policy: TierPolicy,
        *,
        now: float,
        bucket_start: int,
        reset_at: float,
    ) -> Decision:
        window = policy.window_seconds
        elapsed = now - bucket_start
        previous_weight = max(0.0, 1.0 - elapsed / window)
        count = math.floor(counts.previous * previous_weight) + counts.current

        return Decision(
            allowed=count <= policy.max_requests,
            limit=policy.max_requests,
            remaining=max(0, policy.max_requests - count),
            reset_at=reset_at,
        )

    def _fail_open(
        self,
        identity: str,
        tier: Tier,
        *,
        now: float,
        cause: BaseException,
    ) -> Decision:
        logger.warning(
            "rate_limit.fail_open",
            extra={
                "tier": tier.value,
                "identity_hash": hash_identity(identity),
                "error_type": type(cause).__name__,
                "error_msg": str(cause),
            },
        )
        return Decision(
            allowed=True,
            limit=self._fail_open_limit,
            remaining=self._fail_open_limit,
            reset_at=now + self._tiers[tier].window_seconds,
            degraded=True,
        )
