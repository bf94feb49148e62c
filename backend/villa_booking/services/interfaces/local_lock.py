"""
In-process calendar lock - keyed asyncio.Lock.
Correct for a single API instance (one event loop owns every reservation).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from villa_booking.infrastructure.keyed_lock import KeyedLock
from villa_booking.services.interfaces.villa_lock import VillaLock


class InProcessVillaLock(VillaLock):
    """
    Use when:
    - One API process serves all bookings
    - Development and tests (works on any database)
    """

    name = "memory"

    def __init__(self, locks: KeyedLock | None = None):
        self._locks = locks or KeyedLock()

    @asynccontextmanager
    async def hold(self, db: AsyncSession, villa_id: str) -> AsyncIterator[None]:
        async with self._locks.acquire(f"villa:{villa_id}"):
            yield
