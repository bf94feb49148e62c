"""
Booking model representing a guest's stay at a villa.

Key design decisions:
- Status is a closed enum with an explicit transition table; services call
  ``ensure_transition`` instead of writing the column freely
- Prices are snapshotted at hold time and never recomputed
- `version` column enables optimistic (status-and-version guarded) updates so
  confirm/expire/cancel stay single-writer across processes
- `hold_expires_at` is indexed for the expiry sweeper
"""

import enum

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String

from villa_booking.core.exceptions import InvalidStateError
from villa_booking.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    INQUIRY = "inquiry"
    IN_PROGRESS = "in_progress"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentPlan(str, enum.Enum):
    FULL = "full"
    SPLIT = "split"


ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.INQUIRY: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})


def can_transition(current: str, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[BookingStatus(current)]


def ensure_transition(current: str, target: BookingStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Cannot move booking from {current} to {target.value}",
            current=current,
            target=target.value,
        )


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True)
    guest_user_id = Column(String(64), nullable=False, index=True)
    villa_id = Column(String(36), ForeignKey("villas.id"), nullable=False, index=True)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    adults = Column(Integer, nullable=False, default=1)
    children = Column(Integer, nullable=False, default=0)
    infants = Column(Integer, nullable=False, default=0)

    # Price snapshot
    total_base_usd = Column(Numeric(12, 2), nullable=False)
    total_fees_usd = Column(Numeric(12, 2), nullable=False)
    total_taxes_usd = Column(Numeric(12, 2), nullable=False)
    total_usd = Column(Numeric(12, 2), nullable=False)
    balance_usd = Column(Numeric(12, 2), nullable=False)
    payment_plan = Column(String(10), nullable=False, default=PaymentPlan.FULL.value)

    status = Column(String(20), nullable=False, default=BookingStatus.IN_PROGRESS.value)
    contract_signed_at = Column(DateTime(timezone=True), nullable=True)
    payment_intent_id = Column(String(255), nullable=True)
    calendar_event_id = Column(String(36), nullable=True)
    hold_expires_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(String(255), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Optimistic concurrency counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("check_out > check_in", name="check_booking_dates"),
        CheckConstraint("adults >= 1", name="check_booking_adults"),
        CheckConstraint("children >= 0 AND infants >= 0", name="check_booking_minors"),
        # total = base + fees + taxes is checked in the PostgreSQL migration,
        # where NUMERIC arithmetic is exact
        CheckConstraint("balance_usd <= total_usd", name="check_booking_balance"),
        CheckConstraint(
            "status IN ('inquiry', 'in_progress', 'confirmed', 'cancelled', 'completed')",
            name="check_booking_status",
        ),
        # Sweeper query: WHERE status = 'in_progress' AND hold_expires_at <= now
        Index("ix_bookings_status_hold_expires", "status", "hold_expires_at"),
    )

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, guest={self.guest_user_id}, villa={self.villa_id}, status={self.status})>"
