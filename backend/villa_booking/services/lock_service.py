"""
Cross-process calendar lock strategies.

Advisory lock (PostgreSQL):
  pg_advisory_xact_lock(key) is taken on the same transaction that runs the
  conflict check and the insert. PostgreSQL releases it at COMMIT/ROLLBACK,
  so the lock can never outlive the reservation it protects.

Redis lock:
  For deployments where the calendar database is not PostgreSQL or where
  several services reserve dates. The lock has a timeout so a crashed holder
  cannot block a villa forever; the timeout must exceed a reserve round-trip.
"""

import hashlib
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as redis
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from villa_booking.core.exceptions import LockTimeoutError
from villa_booking.core.logging import get_logger
from villa_booking.core.metrics import calendar_lock_wait
from villa_booking.services.interfaces.villa_lock import VillaLock

logger = get_logger(__name__)


def advisory_key(villa_id: str) -> int:
    """Map a villa id onto PostgreSQL's signed 64-bit advisory key space."""
    digest = hashlib.blake2b(f"villa-calendar:{villa_id}".encode(), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


class AdvisoryVillaLock(VillaLock):
    """
    Use when:
    - Several API instances share one PostgreSQL database
    """

    name = "advisory"

    def __init__(self, timeout_seconds: float = 10.0):
        self.timeout_ms = int(timeout_seconds * 1000)

    @asynccontextmanager
    async def hold(self, db: AsyncSession, villa_id: str) -> AsyncIterator[None]:
        started = time.perf_counter()
        await db.execute(text(f"SET LOCAL lock_timeout = {self.timeout_ms}"))
        try:
            await db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": advisory_key(villa_id)})
        except DBAPIError as e:
            logger.warning("advisory_lock_failed", villa_id=villa_id, error=str(e))
            raise LockTimeoutError(villa_id=villa_id) from e
        calendar_lock_wait.observe(time.perf_counter() - started)
        # Released by the transaction end, not here
        yield


class RedisVillaLock(VillaLock):
    """
    Use when:
    - Several API instances and a non-PostgreSQL store
    - Other services also write the villa calendar
    """

    name = "redis"

    def __init__(self, client: redis.Redis, timeout_seconds: float = 10.0):
        self.client = client
        self.timeout_seconds = timeout_seconds

    @asynccontextmanager
    async def hold(self, db: AsyncSession, villa_id: str) -> AsyncIterator[None]:
        lock = self.client.lock(
            f"villa:calendar:lock:{villa_id}",
            timeout=self.timeout_seconds,
            blocking_timeout=self.timeout_seconds,
        )
        started = time.perf_counter()
        if not await lock.acquire():
            logger.warning("redis_lock_timeout", villa_id=villa_id)
            raise LockTimeoutError(villa_id=villa_id)
        calendar_lock_wait.observe(time.perf_counter() - started)
        try:
            yield
        finally:
            try:
                await lock.release()
            except redis.RedisError as e:
                # Lock expired under us; the reservation already committed or rolled back
                logger.warning("redis_lock_release_failed", villa_id=villa_id, error=str(e))
