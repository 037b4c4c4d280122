"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any import that might load settings,
so the suite never needs a running Redis.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "json")

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from admission.adapters.counter_store.base import (
    AbstractCounterStore,
    StoreOutcome,
    StoreUnreachable,
)
from admission.adapters.counter_store.in_memory import InMemoryCounterStore
from admission.core.rate_limit import set_rate_limiter
from admission.services.cache import set_read_through_cache


class FakeClock:
    """Deterministic, manually advanced clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class SwitchableStore(AbstractCounterStore):
    """In-memory store that can be taken down to simulate an outage."""

    def __init__(self, clock: FakeClock) -> None:
        self.inner = InMemoryCounterStore(clock=clock)
        self.down = False

    def increment_window(
        self,
        current_key: str,
        previous_key: str,
        *,
        expire_at: float,
    ) -> StoreOutcome:
        if self.down:
            return StoreUnreachable(cause=RedisConnectionError("Connection refused"))
        return self.inner.increment_window(current_key, previous_key, expire_at=expire_at)

    def ping(self) -> bool:
        return not self.down


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def switchable_store(clock: FakeClock) -> SwitchableStore:
    return SwitchableStore(clock)


@pytest.fixture(autouse=True)
def reset_process_singletons():
    """Give every test a fresh limiter and cache."""
    set_rate_limiter(None)
    set_read_through_cache(None)
    yield
    set_rate_limiter(None)
    set_read_through_cache(None)
