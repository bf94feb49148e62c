"""
Date-ranged occupancy of a villa.

Key design decisions:
- Intervals are half-open [start_date, end_date): a check-out day can be the
  next guest's check-in day
- booking_id is a plain indexed column, not a foreign key: the hold event is
  reserved before the booking row is written
- The no-overlap invariant is enforced by CalendarStore under a per-villa lock;
  on PostgreSQL the migration adds a GiST exclusion constraint as a backstop
"""

import enum

from sqlalchemy import CheckConstraint, Column, Date, Index, String

from villa_booking.db.base import Base, TimestampMixin, new_id


class CalendarEventType(str, enum.Enum):
    BLOCKED = "blocked"
    BOOKING = "booking"
    MANUAL_HOLD = "manual_hold"


class CalendarEvent(Base, TimestampMixin):
    __tablename__ = "calendar_events"

    id = Column(String(36), primary_key=True, default=new_id)
    villa_id = Column(String(36), nullable=False)
    event_type = Column(String(20), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    booking_id = Column(String(36), nullable=True, index=True)
    note = Column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="check_calendar_event_range"),
        CheckConstraint(
            "event_type IN ('blocked', 'booking', 'manual_hold')",
            name="check_calendar_event_type",
        ),
        # Overlap queries filter by villa then compare both bounds
        Index("ix_calendar_events_villa_range", "villa_id", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<CalendarEvent(id={self.id}, villa={self.villa_id}, type={self.event_type}, "
            f"{self.start_date}..{self.end_date})>"
        )
