"""
Redis client for the distributed calendar lock.
Only created when LOCK_STRATEGY=redis.
"""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from villa_booking.core.config import Settings, get_settings
from villa_booking.core.logging import get_logger

logger = get_logger(__name__)

_redis_client: Optional[redis.Redis] = None


async def get_redis(settings: Optional[Settings] = None) -> redis.Redis:
    """
    Get or create the shared Redis connection.

    Raises:
        RedisError: Redis did not answer a PING
    """
    global _redis_client
    settings = settings or get_settings()

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        try:
            await client.ping()
        except RedisError as e:
            logger.error("redis_connection_failed", url=settings.REDIS_URL, error=str(e))
            await client.aclose()
            raise
        _redis_client = client
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
