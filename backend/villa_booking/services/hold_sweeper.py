"""
Background task that expires holds whose deadline has passed.

Each pass asks the lifecycle manager for overdue holds and expires them one
at a time. A hold that was confirmed or cancelled in the meantime is skipped.
Any other failure (a void outage, say) is logged and counted; the hold stays
in_progress and is picked up again next pass.
"""

import asyncio
from typing import Optional

from villa_booking.core.exceptions import BookingError, InvalidStateError
from villa_booking.core.logging import get_logger
from villa_booking.core.metrics import sweeper_errors, sweeper_expired, sweeper_passes
from villa_booking.services.booking_lifecycle import BookingLifecycleManager

logger = get_logger(__name__)


class HoldExpirySweeper:
    def __init__(
        self,
        manager: BookingLifecycleManager,
        interval_seconds: float = 30.0,
        batch_size: int = 100,
    ):
        self.manager = manager
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> int:
        """One sweep. Returns how many holds were expired."""
        expired = 0
        booking_ids = await self.manager.find_expired_holds(self.batch_size)
        for booking_id in booking_ids:
            try:
                await self.manager.expire(booking_id)
            except InvalidStateError as e:
                # Confirmed or cancelled since the query ran
                logger.info("sweeper_skipped", booking_id=booking_id, code=e.code, error=e.message)
                continue
            except BookingError as e:
                sweeper_errors.inc()
                logger.warning("sweeper_expire_failed", booking_id=booking_id, code=e.code, error=e.message)
                continue
            expired += 1

        sweeper_passes.inc()
        sweeper_expired.inc(expired)
        if booking_ids:
            logger.info("sweeper_pass", found=len(booking_ids), expired=expired)
        return expired

    async def _run(self) -> None:
        logger.info("sweeper_started", interval_seconds=self.interval_seconds)
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Database blips must not kill the loop
                sweeper_errors.inc()
                logger.error("sweeper_pass_failed", error=str(e))
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("sweeper_stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
