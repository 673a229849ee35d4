"""
Redis caching and fan-out for the studio API.

CACHING STRATEGY
================

What we cache:
  - Day availability responses (slot grid for one date and duration)
  - Cache key pattern: "availability:date={date}&duration={hours}"

Why:
  - The booking calendar asks for a full day grid on every date click
  - Building it reads every blocking booking and event on that day

Invalidation strategy:
  - Any booking create, cancel, reschedule or status change deletes all
    availability keys; so does event creation and deletion
  - TTL-based expiry as safety net

  All availability keys share the "availability:" prefix so we can SCAN and
  delete them. The keyspace is one entry per (date, duration) actually viewed.

  The cache only feeds the calendar. Booking creation always re-checks
  conflicts against the database, so a stale grid can never double-book.

NOTIFICATION FAN-OUT
====================

  Each stored notification is also published on "notifications:{user_id}".
  The notifications websocket subscribes to that channel. Publishing is best
  effort: the row in the database is the source of truth and the inbox
  endpoint always reads from there.
"""

import json
from typing import Optional

import redis.asyncio as redis
from booth33.core.config import get_settings
from booth33.core.logging import get_logger
from booth33.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

AVAILABILITY_PREFIX = "availability:"

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
            redis_connection_errors.inc()
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_availability_key(day, duration: int) -> str:
    return f"{AVAILABILITY_PREFIX}date={day.isoformat()}&duration={duration}"


def notification_channel(user_id: int) -> str:
    return f"notifications:{user_id}"


async def get_cached_availability(day, duration: int) -> Optional[dict]:
    """Retrieve a cached availability response."""
    client = await get_redis()
    if not client:
        return None

    key = _make_availability_key(day, duration)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=bool(data))
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_availability(day, duration: int, data: dict) -> None:
    """Cache an availability response with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_availability_key(day, duration)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_availability_cache() -> None:
    """
    Invalidate every cached availability grid.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{AVAILABILITY_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def publish_notification(user_id: int, payload: dict) -> None:
    """Push a notification to live subscribers of the user's channel."""
    client = await get_redis()
    if not client:
        return

    channel = notification_channel(user_id)
    try:
        receivers = await client.publish(channel, json.dumps(payload, default=str))
        logger.debug("notification_published", channel=channel, receivers=receivers)
    except Exception as e:
        logger.error("notification_publish_error", channel=channel, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        keyspace = await client.info("keyspace")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
            "keys": keyspace,
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
