"""In-memory window counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from admission.adapters.counter_store.base import (
    AbstractCounterStore,
    StoreOutcome,
    StoreReached,
)


@dataclass
class _Counter:
    value: int
    expires_at: float


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store backed by a dict guarded by a lock.

    Expired counters are treated as absent and are swept on each write, so
    memory stays bounded by the number of keys active in the last two
    windows.

    Important:
        This store is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize the store.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._counters: dict[str, _Counter] = {}

    def _read_locked(self, key: str, now: float) -> int:
        counter = self._counters.get(key)
        if counter is None or counter.expires_at <= now:
            return 0
        return counter.value

    def _sweep_expired_locked(self, now: float) -> None:
        expired = [k for k, c in self._counters.items() if c.expires_at <= now]
        for key in expired:
            del self._counters[key]

    def increment_window(
        self,
        current_key: str,
        previous_key: str,
        *,
        expire_at: float,
    ) -> StoreOutcome:
        now = self._clock()

        with self._lock:
            self._sweep_expired_locked(now)

            counter = self._counters.get(current_key)
            if counter is None:
                counter = _Counter(value=0, expires_at=expire_at)
                self._counters[current_key] = counter
            counter.value += 1

            return StoreReached(
                current=counter.value,
                previous=self._read_locked(previous_key, now),
            )

    def ping(self) -> bool:
        return True

    def clear(self) -> None:
        """Drop all counters."""

        with self._lock:
            self._counters.clear()
