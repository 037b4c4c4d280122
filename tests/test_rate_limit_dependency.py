"""Tests for the FastAPI rate limit dependency and its 429 responses."""

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from admission.core.config import settings
from admission.core.exception_handlers import setup_exception_handlers
from admission.core.rate_limit import rate_limited, set_rate_limiter
from admission.core.tiers import Tier
from admission.services.rate_limiter import TieredRateLimiter

CLIENT_HEADERS = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}


@pytest.fixture
def limiter(switchable_store, clock) -> TieredRateLimiter:
    limiter = TieredRateLimiter(switchable_store, clock=clock)
    set_rate_limiter(limiter)
    return limiter


@pytest.fixture
def client(limiter: TieredRateLimiter) -> TestClient:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.post("/login", dependencies=[Depends(rate_limited(Tier.AUTH))])
    def login() -> dict:
        return {"ok": True}

    @app.get("/items", dependencies=[Depends(rate_limited("api"))])
    def items() -> dict:
        return {"items": []}

    return TestClient(app)


def test_allowed_response_carries_rate_limit_headers(client: TestClient) -> None:
    resp = client.post("/login", headers=CLIENT_HEADERS)

    assert resp.status_code == 200
    assert resp.headers["X-RateLimit-Limit"] == "5"
    assert resp.headers["X-RateLimit-Remaining"] == "4"
    # clock at 1000.0: bucket [960, 1020), counters expire at 1080
    assert resp.headers["X-RateLimit-Reset"] == "1080"
    assert "Retry-After" not in resp.headers


def test_exhausted_budget_returns_429(client: TestClient) -> None:
    for _ in range(5):
        assert client.post("/login", headers=CLIENT_HEADERS).status_code == 200

    resp = client.post("/login", headers=CLIENT_HEADERS)

    assert resp.status_code == 429
    assert resp.headers["Retry-After"] == "80"
    assert resp.headers["X-RateLimit-Limit"] == "5"
    assert resp.headers["X-RateLimit-Remaining"] == "0"

    error = resp.json()["error"]
    assert error["code"] == "rate_limit_exceeded"
    assert error["details"]["tier"] == "auth"
    assert error["details"]["retry_after"] == 80
    assert error["details"]["remaining"] == 0


def test_identities_from_different_proxies_are_separate(client: TestClient) -> None:
    for _ in range(6):
        client.post("/login", headers=CLIENT_HEADERS)

    assert client.post("/login", headers={"X-Real-IP": "198.51.100.9"}).status_code == 200


def test_tier_budgets_are_independent(client: TestClient) -> None:
    for _ in range(6):
        client.post("/login", headers=CLIENT_HEADERS)

    resp = client.get("/items", headers=CLIENT_HEADERS)
    assert resp.status_code == 200
    assert resp.headers["X-RateLimit-Limit"] == "30"


def test_store_outage_fails_open(client: TestClient, switchable_store) -> None:
    for _ in range(6):
        client.post("/login", headers=CLIENT_HEADERS)

    switchable_store.down = True
    resp = client.post("/login", headers=CLIENT_HEADERS)

    assert resp.status_code == 200
    assert resp.headers["X-RateLimit-Limit"] == "999"
    assert resp.headers["X-RateLimit-Remaining"] == "999"


def test_disabled_rate_limiting_is_a_no_op(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings.rate_limit, "enabled", False)

    for _ in range(10):
        resp = client.post("/login", headers=CLIENT_HEADERS)
        assert resp.status_code == 200
        assert "X-RateLimit-Limit" not in resp.headers


def test_headers_can_be_suppressed(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings.rate_limit, "include_headers", False)

    for _ in range(5):
        resp = client.post("/login", headers=CLIENT_HEADERS)
        assert "X-RateLimit-Limit" not in resp.headers

    blocked = client.post("/login", headers=CLIENT_HEADERS)
    assert blocked.status_code == 429
    assert "Retry-After" not in blocked.headers


def test_unknown_tier_fails_at_declaration() -> None:
    with pytest.raises(ValueError):
        rate_limited("admin")


def test_default_limiter_is_built_from_settings() -> None:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/ping", dependencies=[Depends(rate_limited(Tier.PUBLIC))])
    def ping() -> dict:
        return {"pong": True}

    resp = TestClient(app).get("/ping")

    assert resp.status_code == 200
    assert resp.headers["X-RateLimit-Limit"] == "100"
    assert resp.headers["X-RateLimit-Remaining"] == "99"
