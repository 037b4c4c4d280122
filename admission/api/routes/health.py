from __future__ import annotations

from fastapi import APIRouter

from admission.core.rate_limit import get_rate_limiter
from admission.schemas.limits import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint.

    Always answers 200 while the process is up. A ``degraded`` status means
    the counter store is unreachable and requests are being admitted without
    rate limiting.
    """

    if get_rate_limiter().store_available():
        return HealthResponse(status="ok", counter_store="reachable")
    return HealthResponse(status="degraded", counter_store="unreachable")
