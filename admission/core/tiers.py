"""Rate limiting tiers and their fixed policies.

Each endpoint class maps to exactly one tier. The table is built once at
import time and exposed read-only; the limiter receives it by injection so
tests can supply a smaller table without touching process-wide state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Tier(str, Enum):
    """Endpoint classes with distinct request budgets."""

    PUBLIC = "public"
    API = "api"
    AUTH = "auth"
    UPLOAD = "upload"


@dataclass(frozen=True)
class TierPolicy:
    """Window duration and request ceiling for a tier.

    Attributes:
        window_seconds: Length of the sliding window in seconds.
        max_requests: Requests allowed within any window of that length.
    """

    window_seconds: int
    max_requests: int

    def __post_init__(self) -> None:
        if self.window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")


TierTable = Mapping[Tier, TierPolicy]


def build_tier_table(policies: Mapping[Tier, TierPolicy]) -> TierTable:
    """Freeze a tier -> policy mapping.

    Args:
        policies: Policy for every member of ``Tier``.

    Returns:
        Read-only mapping.

    Raises:
        ValueError: If a tier is missing a policy.
    """

    missing = [tier.value for tier in Tier if tier not in policies]
    if missing:
        raise ValueError(f"missing policy for tiers: {', '.join(missing)}")
    return MappingProxyType(dict(policies))


DEFAULT_TIERS: TierTable = build_tier_table(
    {
        Tier.PUBLIC: TierPolicy(window_seconds=60, max_requests=100),
        Tier.API: TierPolicy(window_seconds=60, max_requests=30),
        Tier.AUTH: TierPolicy(window_seconds=60, max_requests=5),
        Tier.UPLOAD: TierPolicy(window_seconds=60, max_requests=10),
    }
)
