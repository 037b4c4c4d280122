"""HTTP middleware for request correlation.

The middleware:
- Accepts an incoming X-Request-ID header or generates a UUID
- Stores request_id in contextvars for log correlation
- Resolves the client identity once and exposes it on ``request.state``
- Logs one ``http.request`` line per request with status and duration
- Injects request_id and duration into response headers

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from admission.core.config import settings
from admission.core.identity import resolve_identity
from admission.core.logging import clear_request_id, set_request_id
from admission.services.rate_limiter import hash_identity

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a correlation id and client identity to every request.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with ``X-Request-ID`` and
            ``X-Request-Duration-ms`` headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)

    identity = resolve_identity(request.headers)
    request.state.client_identity = identity

    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "identity_hash": hash_identity(identity),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
