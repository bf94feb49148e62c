"""
Captured payment for a booking and the refunds issued against it.
"""

import enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Numeric, String

from villa_booking.db.base import Base, TimestampMixin, new_id


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    payment_intent_id = Column(String(255), nullable=False)
    charge_id = Column(String(255), nullable=False)
    charged_amount_usd = Column(Numeric(12, 2), nullable=False)
    refunded_amount_usd = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default=PaymentStatus.SUCCEEDED.value)
    refund_id = Column(String(255), nullable=True)

    __table_args__ = (
        CheckConstraint("refunded_amount_usd <= charged_amount_usd", name="check_payment_refund_lte_charge"),
        CheckConstraint(
            "status IN ('pending', 'succeeded', 'failed', 'refunded')",
            name="check_payment_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, booking={self.booking_id}, status={self.status})>"
