"""
Redis caching service for hotel and track listings.

CACHING STRATEGY
================

What we cache:
  - Catalog listing responses (paginated, filtered, JSON-serialized)
  - Cache key pattern: "services:list:{kind}:page={page}&per_page={n}&{filters}"

Invalidation strategy:
  - On service create/delete: delete every listing of that kind
  - On booking approval, denial, refund or auto-accepted reservation: delete
    every listing (availability filters depend on approved bookings)
  - TTL-based expiry as safety net (5 minutes)

  All listing keys share the "services:list:" prefix so we can SCAN and
  delete them.

Why NOT cache availability checks for reservations:
  - The reservation workflow must see the committed approved bookings
    (stale data = overbooking)

The cache fails open: any Redis error is logged and the caller falls back to
the database.
"""

import json
from typing import Optional

import redis.asyncio as redis
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

LIST_PREFIX = "services:list:"

_redis_client: Optional[redis.Redis] = None


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


def make_list_key(kind: str, page: int, per_page: int, fragment: str) -> str:
    return f"{LIST_PREFIX}{kind}:page={page}&per_page={per_page}&{fragment}"


async def get_cached_services(key: str) -> Optional[dict]:
    """Retrieve a cached listing response."""
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(key)
        if data:
            record_cache_operation("get", hit=True)
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        record_cache_operation("get", hit=False)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_services(key: str, data: dict) -> None:
    """Cache a listing response with TTL."""
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_service_cache(kind: Optional[str] = None) -> None:
    """
    Invalidate cached listings of one kind, or of every kind when None.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    pattern = f"{LIST_PREFIX}{kind}:*" if kind else f"{LIST_PREFIX}*"
    try:
        deleted = 0
        async for key in client.scan_iter(match=pattern, count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", pattern=pattern, keys_deleted=deleted)
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
