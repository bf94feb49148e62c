"""
Calendar lock strategy factory.
Configures which per-villa mutual exclusion strategy to use.
"""

from redis.exceptions import RedisError

from villa_booking.core.config import Settings
from villa_booking.infrastructure.redis_client import get_redis
from villa_booking.services.interfaces.local_lock import InProcessVillaLock
from villa_booking.services.interfaces.villa_lock import VillaLock
from villa_booking.services.lock_service import AdvisoryVillaLock, RedisVillaLock


async def get_villa_lock(settings: Settings) -> VillaLock:
    """
    Get configured calendar lock strategy.

    Strategy selection (LOCK_STRATEGY env var):
    - memory: InProcessVillaLock (single instance, default)
    - advisory: AdvisoryVillaLock (PostgreSQL, multi-instance)
    - redis: RedisVillaLock (multi-instance, any database)

    Raises:
        ValueError: unknown strategy
        RuntimeError: redis requested but REDIS_URL is unreachable
    """
    strategy = settings.LOCK_STRATEGY.lower()

    if strategy == "advisory":
        return AdvisoryVillaLock(timeout_seconds=settings.LOCK_TIMEOUT_SECONDS)

    if strategy == "redis":
        try:
            client = await get_redis(settings)
        except RedisError as e:
            raise RuntimeError(f"LOCK_STRATEGY=redis but Redis at {settings.REDIS_URL} is unreachable") from e
        return RedisVillaLock(client, timeout_seconds=settings.LOCK_TIMEOUT_SECONDS)

    if strategy != "memory":
        raise ValueError(f"Unknown LOCK_STRATEGY: {settings.LOCK_STRATEGY}")
    return InProcessVillaLock()
