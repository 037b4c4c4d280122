"""Rate limit introspection endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from admission.core.identity import resolve_identity
from admission.core.rate_limit import get_rate_limiter, rate_limited
from admission.core.tiers import Tier
from admission.schemas.limits import LimitsResponse, TierPolicySchema
from admission.services.cache import CacheKeys, CacheTTL, get_read_through_cache

router = APIRouter(prefix="/limits", tags=["Limits"])


def _tier_table_payload() -> list[dict]:
    tiers = get_rate_limiter().tiers
    return [
        {
            "tier": tier.value,
            "window_seconds": policy.window_seconds,
            "max_requests": policy.max_requests,
        }
        for tier, policy in tiers.items()
    ]


@router.get(
    "",
    response_model=LimitsResponse,
    dependencies=[Depends(rate_limited(Tier.PUBLIC))],
)
def list_limits(request: Request) -> LimitsResponse:
    """Return every tier's policy and the caller's resolved identity.

    Counted against the ``public`` tier. The rate limit headers on the
    response show the caller's remaining public budget.
    """

    identity = getattr(request.state, "client_identity", None) or resolve_identity(
        request.headers
    )
    payload = get_read_through_cache().get_or_fetch(
        CacheKeys.TIERS, CacheTTL.TIERS, _tier_table_payload
    )

    return LimitsResponse(
        identity=identity,
        tiers=[TierPolicySchema(**item) for item in payload],
    )
