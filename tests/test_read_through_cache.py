"""Tests for the Redis-first read-through cache."""

import json
import logging
from unittest.mock import MagicMock

import fakeredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from admission.services.cache import CacheKeys, ReadThroughCache
from admission.utils.simple_cache import SimpleTTLCache


@pytest.fixture
def redis_client() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def broken_client() -> MagicMock:
    client = MagicMock()
    error = RedisConnectionError("Connection refused")
    client.get.side_effect = error
    client.set.side_effect = error
    client.delete.side_effect = error
    client.scan_iter.side_effect = error
    return client


def test_fetcher_runs_once_and_value_lands_in_redis(redis_client) -> None:
    cache = ReadThroughCache(redis_client)
    calls = []

    def _fetch() -> dict:
        calls.append(1)
        return {"tiers": ["public", "api"]}

    assert cache.get_or_fetch(CacheKeys.TIERS, 60, _fetch) == {"tiers": ["public", "api"]}
    assert cache.get_or_fetch(CacheKeys.TIERS, 60, _fetch) == {"tiers": ["public", "api"]}

    assert len(calls) == 1
    assert json.loads(redis_client.get(CacheKeys.TIERS)) == {"tiers": ["public", "api"]}
    assert 0 < redis_client.ttl(CacheKeys.TIERS) <= 60


def test_redis_outage_falls_back_to_local_cache(
    broken_client, caplog: pytest.LogCaptureFixture
) -> None:
    local = SimpleTTLCache()
    cache = ReadThroughCache(broken_client, local=local)
    calls = []

    def _fetch() -> list:
        calls.append(1)
        return [1, 2, 3]

    with caplog.at_level(logging.WARNING, logger="admission.services.cache"):
        assert cache.get_or_fetch("cache:numbers", 60, _fetch) == [1, 2, 3]
        assert cache.get_or_fetch("cache:numbers", 60, _fetch) == [1, 2, 3]

    assert len(calls) == 1
    assert local.get("cache:numbers") == [1, 2, 3]
    events = {r.getMessage() for r in caplog.records}
    assert {"cache.get_failed", "cache.set_failed"} <= events


def test_broken_redis_never_raises(broken_client) -> None:
    cache = ReadThroughCache(broken_client)

    assert cache.get("cache:x") is None
    cache.set("cache:x", 1, 10)
    cache.delete("cache:x")
    cache.invalidate_pattern("cache:*")


def test_local_only_cache() -> None:
    cache = ReadThroughCache(None)
    cache.set("cache:a", "value", 10)

    assert cache.get("cache:a") == "value"
    cache.delete("cache:a")
    assert cache.get("cache:a") is None


def test_invalidate_pattern_clears_both_levels(redis_client) -> None:
    local = SimpleTTLCache()
    local.set("cache:models:1", "local", 60)
    redis_client.set("cache:models:1", json.dumps("remote"))
    redis_client.set("cache:models:2", json.dumps("remote"))
    redis_client.set("ratelimit:api:1.2.3.4:16", 3)
    cache = ReadThroughCache(redis_client, local=local)

    cache.invalidate_pattern("cache:models:*")

    assert local.get("cache:models:1") is None
    assert redis_client.get("cache:models:1") is None
    assert redis_client.get("cache:models:2") is None
    assert redis_client.get("ratelimit:api:1.2.3.4:16") == "3"


def test_fetcher_errors_propagate_and_nothing_is_cached(redis_client) -> None:
    cache = ReadThroughCache(redis_client)

    def _boom() -> None:
        raise LookupError("source unavailable")

    with pytest.raises(LookupError):
        cache.get_or_fetch("cache:boom", 60, _boom)

    assert redis_client.get("cache:boom") is None
