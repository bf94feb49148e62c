"""
Villa listing as seen by the booking core.

The catalog is owned by the listing service; this core only reads the
published flag, capacity and the price inputs.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String

from villa_booking.db.base import Base, TimestampMixin, new_id


class Villa(Base, TimestampMixin):
    __tablename__ = "villas"

    id = Column(String(36), primary_key=True, default=new_id)
    host_user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    published = Column(Boolean, nullable=False, default=False)
    base_price_usd_per_night = Column(Numeric(12, 2), nullable=False)
    cleaning_fee_usd = Column(Numeric(12, 2), nullable=False, default=0)
    service_fee_ratio = Column(Numeric(5, 4), nullable=False, default=0)
    damage_waiver_ratio = Column(Numeric(5, 4), nullable=False, default=0)
    max_guests = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("base_price_usd_per_night >= 0", name="check_villa_base_price_non_negative"),
        CheckConstraint("max_guests > 0", name="check_villa_max_guests_positive"),
    )

    def __repr__(self) -> str:
        return f"<Villa(id={self.id}, published={self.published})>"
