"""Response schemas for the limits and health endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class TierPolicySchema(BaseModel):
    """Public view of one tier's policy."""

    tier: str = Field(..., description="Tier name (public, api, auth, upload)")
    window_seconds: int = Field(..., ge=1, description="Sliding window length")
    max_requests: int = Field(..., ge=1, description="Requests allowed per window")


class LimitsResponse(BaseModel):
    """Tier table plus the identity the caller is counted under."""

    identity: str = Field(..., description="Client identity resolved from proxy headers")
    tiers: list[TierPolicySchema]


class HealthResponse(BaseModel):
    """Liveness plus counter store reachability.

    ``degraded`` means the API is up but rate limiting is failing open.
    """

    status: Literal["ok", "degraded"]
    counter_store: Literal["reachable", "unreachable"]
