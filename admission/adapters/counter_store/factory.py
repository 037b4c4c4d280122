"""Factory for creating counter store instances."""

from admission.adapters.counter_store.base import AbstractCounterStore
from admission.adapters.counter_store.in_memory import InMemoryCounterStore
from admission.adapters.counter_store.redis_store import RedisCounterStore
from admission.adapters.redis_client import get_redis_client
from admission.core.config import settings
from admission.core.errors import ValidationAppError


def create_counter_store() -> AbstractCounterStore:
    """Instantiate the counter store selected by ``RATE_LIMIT_BACKEND``.

    Returns:
        AbstractCounterStore: Configured store instance.

    Raises:
        ValidationAppError: If the backend name is not supported.
    """
    backend = settings.rate_limit.backend.lower()

    if backend == "redis":
        return RedisCounterStore(get_redis_client())

    if backend == "memory":
        return InMemoryCounterStore()

    raise ValidationAppError(
        code="rate_limit_unknown_backend",
        message=(
            f"Unknown rate limit backend: '{backend}'. Supported backends: redis, memory"
        ),
        details={"backend": backend},
    )
