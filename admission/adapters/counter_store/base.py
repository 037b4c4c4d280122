"""Counter store interfaces.

The limiter depends on this abstraction (not a concrete backend) so window
counters can live in Redis in production and in process memory for local
development and tests.

A store operation has exactly two outcomes, modelled as values rather than
exceptions: the store was reached and returned counts, or it was not.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StoreReached:
    """Counts observed by a successful window increment.

    Attributes:
        current: Counter of the current bucket, after the increment.
        previous: Counter of the preceding bucket (0 when absent or expired).
    """

    current: int
    previous: int


@dataclass(frozen=True)
class StoreUnreachable:
    """The store could not be reached or the operation timed out.

    Attributes:
        cause: Underlying error, kept for logging.
    """

    cause: BaseException


StoreOutcome = StoreReached | StoreUnreachable


class AbstractCounterStore(ABC):
    """Interface for shared window-counter stores."""

    @abstractmethod
    def increment_window(
        self,
        current_key: str,
        previous_key: str,
        *,
        expire_at: float,
    ) -> StoreOutcome:
        """Atomically increment ``current_key`` and read ``previous_key``.

        The counter at ``current_key`` is created with an expiry of
        ``expire_at`` (UNIX seconds) when it does not exist yet; an existing
        counter keeps its expiry. The increment and the read happen as one
        operation with respect to concurrent callers.

        Args:
            current_key: Counter for the current bucket.
            previous_key: Counter for the preceding bucket.
            expire_at: Expiry applied to a newly created current counter.

        Returns:
            StoreReached with both counts, or StoreUnreachable.
        """
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> bool:
        """Return True when the store answers."""
        raise NotImplementedError
