"""
Calendar lock strategy interface.
Allows swapping between different per-villa mutual exclusion approaches.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager

from sqlalchemy.ext.asyncio import AsyncSession


class VillaLock(ABC):
    """
    Serializes conflict-check + insert for one villa.

    Implementations:
    - InProcessVillaLock: keyed asyncio.Lock, single-instance deployments
    - AdvisoryVillaLock: pg_advisory_xact_lock on the reserving transaction
    - RedisVillaLock: distributed lock in Redis, multi-instance deployments
    """

    name: str = "abstract"

    @abstractmethod
    def hold(self, db: AsyncSession, villa_id: str) -> AsyncContextManager[None]:
        """
        Hold the villa's calendar lock for the duration of the block.

        Args:
            db: Session whose transaction performs the check and insert.
                Transaction-scoped implementations attach the lock to it.
            villa_id: Villa to serialize on

        Raises:
            LockTimeoutError: lock could not be acquired in time
        """
