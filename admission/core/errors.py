"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    tier: str
    limit: int
    remaining: int
    reset_at: float
    retry_after: int
    backend: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class RateLimitExceededError(AppError):
    """Raised by the HTTP layer when a tier's budget is exhausted.

    ``headers`` carries the X-RateLimit-* and Retry-After values the
    exception handler copies onto the 429 response.
    """

    headers: dict[str, str] | None = None

    def __init__(
        self,
        message: str,
        *,
        details: ErrorDetails | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(code="rate_limit_exceeded", message=message, details=details)
        self.headers = headers

