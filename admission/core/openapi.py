"""OpenAPI customization utilities.

Enriches the generated schema with:
- Tags metadata
- A ``RateLimit`` description on every rate-limited operation listing the
  response headers clients should read
- A documented 429 response shape

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_RATE_LIMIT_HEADERS = {
    "X-RateLimit-Limit": "Requests allowed per window for this tier.",
    "X-RateLimit-Remaining": "Requests left in the trailing window.",
    "X-RateLimit-Reset": "UNIX time (seconds) when the budget is restored.",
}


def _too_many_requests_response() -> Dict[str, Any]:
    headers = {
        name: {"description": description, "schema": {"type": "integer"}}
        for name, description in _RATE_LIMIT_HEADERS.items()
    }
    headers["Retry-After"] = {
        "description": "Seconds to wait before retrying.",
        "schema": {"type": "integer"},
    }
    return {
        "description": "Rate limit exceeded for the caller's tier.",
        "headers": headers,
    }


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and 429 documentation.

    Every operation except health checks is rate limited, so each receives a
    documented 429 response.
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Limits",
                "description": "Tier policies and the caller's identity.",
            },
            {
                "name": "Health",
                "description": "Liveness and counter store reachability.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith("/health"):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    responses = method_obj.setdefault("responses", {})
                    responses.setdefault("429", _too_many_requests_response())

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
