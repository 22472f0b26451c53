"""
Redis caching service for public catalog listings.

CACHING STRATEGY
================

What we cache:
  - Active package list and active time-slot list (JSON-serialized)
  - Cache key pattern: "catalog:{name}"

Why:
  - Every visit to the packages and booking pages reads them
  - They only change when an admin edits the catalog

Invalidation strategy:
  - On any admin write to packages or time slots: delete all "catalog:*" keys
  - TTL-based expiry as safety net (5 minutes)

Why NOT cache availability:
  - Remaining spots change with every booking
  - A stale count shows parents a slot that is already full
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from app.core.config import get_settings
from app.core.metrics import record_cache_operation
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None

CATALOG_PREFIX = "catalog:"


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            # Test connection
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


def _make_catalog_key(name: str) -> str:
    return f"{CATALOG_PREFIX}{name}"


async def get_cached_catalog(name: str) -> Optional[Any]:
    """Retrieve a cached catalog listing."""
    client = await get_redis()
    if not client:
        return None

    key = _make_catalog_key(name)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_catalog(name: str, data: Any) -> None:
    """Cache a catalog listing with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_catalog_key(name)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_catalog_cache() -> None:
    """
    Invalidate all cached catalog listings.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{CATALOG_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
