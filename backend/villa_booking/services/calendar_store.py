"""
Calendar store: the single source of truth for villa occupancy.

CONCURRENCY STRATEGY: Per-villa serialization
==============================================

Problem:
  Two guests hold overlapping dates on the same villa at the same time.
  Both run "SELECT overlapping events", both see nothing, both INSERT.
  Result: double-booking.

Solution:
  reserve() runs the conflict check and the insert while holding the villa's
  calendar lock (see VillaLock strategies), and commits before the lock is
  released. The next reserver for that villa therefore sees the committed
  row. Different villas never contend.

  Intervals are half-open: [a, b) and [c, d) overlap iff a < d and c < b.

  release() and promote() never add occupancy, so they run in the caller's
  transaction without the villa lock. That lets the lifecycle manager make
  "booking cancelled + event released" and "booking confirmed + event
  promoted" atomic.
"""

from datetime import date
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from villa_booking.core.exceptions import ConflictError, InvalidRangeError, NotFoundError
from villa_booking.core.logging import get_logger
from villa_booking.core.metrics import record_conflict
from villa_booking.models.calendar_event import CalendarEvent, CalendarEventType
from villa_booking.services.interfaces.villa_lock import VillaLock

logger = get_logger(__name__)


def _check_range(start: date, end: date) -> None:
    if end <= start:
        raise InvalidRangeError("End date must be after start date", start=str(start), end=str(end))


class CalendarStore:
    def __init__(self, villa_lock: VillaLock):
        self.villa_lock = villa_lock

    async def find_conflicts(
        self,
        db: AsyncSession,
        villa_id: str,
        start: date,
        end: date,
        exclude_event_id: Optional[str] = None,
    ) -> list[CalendarEvent]:
        """Events on the villa overlapping [start, end), oldest first."""
        query = select(CalendarEvent).where(
            CalendarEvent.villa_id == villa_id,
            CalendarEvent.start_date < end,
            CalendarEvent.end_date > start,
        )
        if exclude_event_id is not None:
            query = query.where(CalendarEvent.id != exclude_event_id)
        result = await db.execute(query.order_by(CalendarEvent.start_date))
        return list(result.scalars().all())

    async def is_available(self, db: AsyncSession, villa_id: str, start: date, end: date) -> bool:
        _check_range(start, end)
        return not await self.find_conflicts(db, villa_id, start, end)

    async def reserve(
        self,
        db: AsyncSession,
        villa_id: str,
        start: date,
        end: date,
        event_type: CalendarEventType,
        booking_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> CalendarEvent:
        """
        Atomically check for overlaps and insert a new event.
        Commits the session; the caller must not have other pending work on it.
        """
        _check_range(start, end)

        try:
            async with self.villa_lock.hold(db, villa_id):
                conflicts = await self.find_conflicts(db, villa_id, start, end)
                if conflicts:
                    record_conflict(event_type.value)
                    logger.info(
                        "calendar_conflict",
                        villa_id=villa_id,
                        start=str(start),
                        end=str(end),
                        conflicting_event_ids=[c.id for c in conflicts],
                    )
                    raise ConflictError(villa_id=villa_id, start=str(start), end=str(end))

                event = CalendarEvent(
                    villa_id=villa_id,
                    event_type=event_type.value,
                    start_date=start,
                    end_date=end,
                    booking_id=booking_id,
                    note=note,
                )
                db.add(event)
                # Commit inside the lock so the next reserver sees this row
                await db.commit()
        except IntegrityError as e:
            # Exclusion constraint on PostgreSQL caught an overlap the lock missed
            await db.rollback()
            record_conflict(event_type.value)
            raise ConflictError(villa_id=villa_id, start=str(start), end=str(end)) from e
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "calendar_reserved",
            event_id=event.id,
            villa_id=villa_id,
            event_type=event_type.value,
            start=str(start),
            end=str(end),
            booking_id=booking_id,
        )
        return event

    async def release(self, db: AsyncSession, event_id: Optional[str]) -> bool:
        """
        Delete an event in the caller's transaction.
        Returns False (no error) when the event is already gone.
        """
        if event_id is None:
            return False
        result = await db.execute(delete(CalendarEvent).where(CalendarEvent.id == event_id))
        released = result.rowcount > 0
        logger.info("calendar_released", event_id=event_id, released=released)
        return released

    async def promote(self, db: AsyncSession, event_id: Optional[str], booking_id: str) -> CalendarEvent:
        """Turn a manual hold into a booking event in the caller's transaction."""
        if event_id is None:
            raise NotFoundError("Booking has no calendar hold", booking_id=booking_id)

        result = await db.execute(
            update(CalendarEvent)
            .where(
                CalendarEvent.id == event_id,
                CalendarEvent.event_type == CalendarEventType.MANUAL_HOLD.value,
            )
            .values(event_type=CalendarEventType.BOOKING.value, booking_id=booking_id)
            .execution_options(synchronize_session=False)
        )

        event = await db.get(CalendarEvent, event_id, populate_existing=True)
        if event is None:
            raise NotFoundError("Calendar hold no longer exists", event_id=event_id)
        if result.rowcount == 0 and not (
            event.event_type == CalendarEventType.BOOKING.value and event.booking_id == booking_id
        ):
            raise NotFoundError("Calendar event is not a hold for this booking", event_id=event_id)
        return event

    async def list_events(self, db: AsyncSession, villa_id: str, start: date, end: date) -> list[CalendarEvent]:
        _check_range(start, end)
        return await self.find_conflicts(db, villa_id, start, end)

    async def get_event(self, db: AsyncSession, event_id: str) -> CalendarEvent:
        event = await db.get(CalendarEvent, event_id)
        if event is None:
            raise NotFoundError(f"Calendar event {event_id} not found")
        return event
