"""Rate limiting dependency for FastAPI routes.

This module wires the tiered limiter into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on ``rate_limited(tier)`` only.
- Swap-friendly: the counter store is chosen by settings behind an
  abstract interface.
- Fail-open: a store outage never turns into an error response.

Usage:
    @router.post("/login", dependencies=[Depends(rate_limited(Tier.AUTH))])
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import Request, Response

from admission.adapters.counter_store.factory import create_counter_store
from admission.core.config import settings
from admission.core.errors import RateLimitExceededError
from admission.core.identity import resolve_identity
from admission.core.tiers import DEFAULT_TIERS, Tier
from admission.services.rate_limiter import Decision, TieredRateLimiter, hash_identity

logger = logging.getLogger(__name__)


_limiter: TieredRateLimiter | None = None


def get_rate_limiter() -> TieredRateLimiter:
    """Return the process-wide limiter, building it on first use.

    Returns:
        TieredRateLimiter: Limiter over the configured counter store.
    """

    global _limiter

    if _limiter is None:
        _limiter = TieredRateLimiter(
            create_counter_store(),
            tiers=DEFAULT_TIERS,
            key_prefix=settings.rate_limit.key_prefix,
            fail_open_limit=settings.rate_limit.fail_open_limit,
        )
    return _limiter


def set_rate_limiter(limiter: TieredRateLimiter | None) -> None:
    """Replace the process-wide limiter (``None`` rebuilds it from settings)."""

    global _limiter
    _limiter = limiter


def build_rate_limit_headers(decision: Decision) -> dict[str, str]:
    """Headers surfacing a decision to the client."""

    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(int(decision.reset_at)),
    }


def rate_limited(tier: Tier | str) -> Callable[[Request, Response], None]:
    """Build a FastAPI dependency enforcing ``tier`` on a route.

    The returned dependency is synchronous so FastAPI runs it in its
    threadpool; the counter store round trip never blocks the event loop.

    Args:
        tier: Tier member or its name. An unknown name raises ``ValueError``
            here, when the route is declared.

    Returns:
        Dependency consuming one unit of the caller's budget per request.
    """

    resolved_tier = Tier(tier)

    def enforce_rate_limit(request: Request, response: Response) -> None:
        """Consume one unit and raise 429 when the budget is exhausted.

        Raises:
            RateLimitExceededError: When the tier's budget is exhausted.
        """

        if not settings.rate_limit.enabled:
            return

        identity = resolve_identity(request.headers)
        limiter = get_rate_limiter()
        decision = limiter.check(identity, resolved_tier)

        headers = build_rate_limit_headers(decision) if settings.rate_limit.include_headers else {}
        log_fields = {
            "tier": resolved_tier.value,
            "identity_hash": hash_identity(identity),
            "limit": decision.limit,
            "remaining": decision.remaining,
            "degraded": decision.degraded,
        }

        if decision.allowed:
            response.headers.update(headers)
            logger.info("rate_limit.allowed", extra=log_fields)
            return

        retry_after = decision.retry_after_seconds(limiter.now())
        logger.warning(
            "rate_limit.exceeded",
            extra={**log_fields, "retry_after_s": retry_after},
        )

        if headers:
            headers["Retry-After"] = str(retry_after)

        raise RateLimitExceededError(
            "Rate limit exceeded. Try again later.",
            details={
                "tier": resolved_tier.value,
                "limit": decision.limit,
                "remaining": decision.remaining,
                "reset_at": decision.reset_at,
                "retry_after": retry_after,
            },
            headers=headers or None,
        )

    return enforce_rate_limit
