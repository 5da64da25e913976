"""Tests for the result cache implementations."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from souq_trust.stores import redis as redis_store
from souq_trust.stores.redis import (
    NullResultCache,
    RedisResultCache,
    ResultCache,
    build_result_cache,
    quality_score_key,
    trust_metrics_key,
)


def test_key_builders():
    assert trust_metrics_key("o1") == "trust:metrics:o1"
    assert quality_score_key("l1") == "trust:quality:l1"


def test_result_cache_is_abstract():
    with pytest.raises(TypeError):
        ResultCache()


@pytest.mark.asyncio
async def test_null_cache_never_hits():
    cache = NullResultCache()
    await cache.set_json("k", {"a": 1}, ttl=60)
    assert await cache.get_json("k") is None
    await cache.delete("k")


@pytest.mark.asyncio
async def test_redis_cache_without_client_is_a_miss():
    assert not redis_store.is_redis_initialized()
    cache = RedisResultCache()

    assert await cache.get_json("k") is None
    await cache.set_json("k", {"a": 1}, ttl=60)
    await cache.delete("k")


@pytest.mark.asyncio
async def test_redis_cache_absorbs_redis_errors(monkeypatch: pytest.MonkeyPatch):
    async def broken(*args, **kwargs):
        raise RedisConnectionError("connection refused")

    monkeypatch.setattr(redis_store, "cache_get_json", broken)
    monkeypatch.setattr(redis_store, "cache_set_json", broken)
    monkeypatch.setattr(redis_store, "cache_delete", broken)
    cache = RedisResultCache()

    assert await cache.get_json("k") is None
    await cache.set_json("k", {"a": 1}, ttl=60)
    await cache.delete("k")


@pytest.mark.asyncio
async def test_redis_cache_reads_json(monkeypatch: pytest.MonkeyPatch):
    stored = {}

    async def fake_get(key):
        return stored.get(key)

    async def fake_set(key, value, ttl):
        stored[key] = value

    monkeypatch.setattr(redis_store, "cache_get", fake_get)
    monkeypatch.setattr(redis_store, "cache_set", fake_set)
    cache = RedisResultCache()

    await cache.set_json("k", {"score": 70}, ttl=60)
    assert stored["k"] == '{"score": 70}'
    assert await cache.get_json("k") == {"score": 70}


def test_build_result_cache_without_redis():
    assert isinstance(build_result_cache(), NullResultCache)
