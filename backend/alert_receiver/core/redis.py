# backend/alert_receiver/core/redis.py
"""Redis client for topic locking and alert count broadcasts."""

import redis.asyncio as redis

from alert_receiver.core.config import settings

redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """
    Get Redis client, creating if needed.

    Returns a singleton Redis client instance. Thread-safe for async usage.
    """
    global redis_client
    if redis_client is None:
        redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    return redis_client


async def close_redis() -> None:
    """
    Close Redis connection.

    Should be called when the job runner shuts down.
    """
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
