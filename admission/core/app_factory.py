from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) to
improve testability.
"""

from fastapi import FastAPI

from admission.api.routes import health_router, limits_router
from admission.core.config import settings
from admission.core.exception_handlers import setup_exception_handlers
from admission.core.logging import configure_logging
from admission.core.middleware import request_id_middleware
from admission.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Admission Control API",
        description=(
            "Tiered, sliding-window rate limiting backed by a shared Redis "
            "counter store. Requests are admitted without limits (fail-open) "
            "while the store is unreachable."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(limits_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
