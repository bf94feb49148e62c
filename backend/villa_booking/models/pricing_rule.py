"""
Host-defined price adjustments and stay restrictions for a villa.
"""

import enum

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Integer, Numeric, String

from villa_booking.db.base import Base, TimestampMixin, new_id


class RuleType(str, enum.Enum):
    SEASON = "season"
    WEEKEND = "weekend"
    EVENT = "event"
    MIN_STAY = "min_stay"
    DISCOUNT_WEEK = "discount_week"
    DISCOUNT_MONTH = "discount_month"


class PricingRule(Base, TimestampMixin):
    __tablename__ = "pricing_rules"

    id = Column(String(36), primary_key=True, default=new_id)
    villa_id = Column(String(36), ForeignKey("villas.id"), nullable=False, index=True)
    rule_type = Column(String(20), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    adjustment_fixed_usd = Column(Numeric(12, 2), nullable=True)
    adjustment_percent = Column(Numeric(5, 2), nullable=True)
    min_nights = Column(Integer, nullable=True)
    priority = Column(Integer, nullable=False, default=10)

    __table_args__ = (
        CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR end_date >= start_date",
            name="check_pricing_rule_range",
        ),
        CheckConstraint(
            "adjustment_percent IS NULL OR (adjustment_percent >= -100 AND adjustment_percent <= 100)",
            name="check_pricing_rule_percent",
        ),
        CheckConstraint("priority > 0", name="check_pricing_rule_priority_positive"),
    )

    def __repr__(self) -> str:
        return f"<PricingRule(id={self.id}, villa={self.villa_id}, type={self.rule_type}, priority={self.priority})>"
