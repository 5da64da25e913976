"""Redis store for result caching.

Handles:
- Caching with TTL policies
- Explicit invalidation on writes

The cache is an accelerator only. Every read falls back to PostgreSQL on a
miss or on any Redis error, and services are fully correct when running
with `NullResultCache`.

TTL policies:
- Owner trust metrics: 5 minutes (invalidated on every recalculation)
- Listing quality scores: 10 minutes (invalidated on every recalculation)
"""

from abc import ABC, abstractmethod
import json
import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from souq_trust.settings import get_settings

# TTL constants (in seconds)
TTL_TRUST_METRICS = 300  # 5 minutes
TTL_QUALITY_SCORE = 600  # 10 minutes

# Key prefixes
PREFIX_TRUST_METRICS = "trust:metrics:"
PREFIX_QUALITY_SCORE = "trust:quality:"

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    # Validate connectivity early (especially for `rediss://` in production).
    try:
        await _redis.ping()
    except RedisError:
        await _redis.aclose()
        _redis = None
        raise
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def is_redis_initialized() -> bool:
    return _redis is not None


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


# ============================================================
# Generic cache operations
# ============================================================


async def cache_get(key: str) -> str | None:
    """Get value from cache.

    Args:
        key: Cache key.

    Returns:
        Cached value or None if not found.
    """
    return await _get_redis().get(key)


async def cache_set(key: str, value: str, ttl: int) -> None:
    """Set value in cache with TTL.

    Args:
        key: Cache key.
        value: Value to cache.
        ttl: Time-to-live in seconds.
    """
    await _get_redis().setex(key, ttl, value)


async def cache_delete(key: str) -> None:
    """Delete value from cache.

    Args:
        key: Cache key.
    """
    await _get_redis().delete(key)


async def cache_get_json(key: str) -> dict[str, Any] | None:
    """Get JSON value from cache.

    Args:
        key: Cache key.

    Returns:
        Parsed JSON dict or None if not found.
    """
    value = await cache_get(key)
    if value:
        return json.loads(value)
    return None


async def cache_set_json(key: str, value: dict[str, Any], ttl: int) -> None:
    """Set JSON value in cache.

    Args:
        key: Cache key.
        value: Dict to cache as JSON.
        ttl: Time-to-live in seconds.
    """
    await cache_set(key, json.dumps(value), ttl)


# ============================================================
# Result cache interface (injected into scoring services)
# ============================================================


class ResultCache(ABC):
    """Cache interface used by the scoring services.

    Implementations must never raise: a failed read is a miss, a failed
    write or delete is logged and ignored.
    """

    @abstractmethod
    async def get_json(self, key: str) -> dict[str, Any] | None:
        """Return the cached dict, or None on a miss."""

    @abstractmethod
    async def set_json(self, key: str, value: dict[str, Any], ttl: int) -> None:
        """Store a dict under key for ttl seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Drop the entry for key."""


class NullResultCache(ResultCache):
    """No-op cache for tests and environments without Redis."""

    async def get_json(self, key: str) -> dict[str, Any] | None:
        return None

    async def set_json(self, key: str, value: dict[str, Any], ttl: int) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None


class RedisResultCache(ResultCache):
    """Redis-backed result cache that degrades to a miss on any error."""

    async def get_json(self, key: str) -> dict[str, Any] | None:
        try:
            return await cache_get_json(key)
        except (RedisError, RuntimeError, ValueError) as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None

    async def set_json(self, key: str, value: dict[str, Any], ttl: int) -> None:
        try:
            await cache_set_json(key, value, ttl)
        except (RedisError, RuntimeError, TypeError, ValueError) as e:
            logger.warning(f"Cache set failed for {key}: {e}")

    async def delete(self, key: str) -> None:
        try:
            await cache_delete(key)
        except (RedisError, RuntimeError) as e:
            logger.warning(f"Cache delete failed for {key}: {e}")


def build_result_cache() -> ResultCache:
    """Pick the cache implementation for the current process.

    Returns the Redis-backed cache when caching is enabled and Redis was
    initialized, otherwise the no-op cache.
    """
    settings = get_settings()
    if settings.cache_enabled and is_redis_initialized():
        return RedisResultCache()
    logger.info("Result cache disabled, using NullResultCache")
    return NullResultCache()


# ============================================================
# Key builders
# ============================================================


def trust_metrics_key(owner_id: str) -> str:
    return f"{PREFIX_TRUST_METRICS}{owner_id}"


def quality_score_key(listing_id: str) -> str:
    return f"{PREFIX_QUALITY_SCORE}{listing_id}"
