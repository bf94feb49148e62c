"""
Cancellation refund policies.

The lifecycle manager asks the configured policy how much of the captured
amount to give back; it never hardcodes tiers itself.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal

from villa_booking.core.security import Actor
from villa_booking.models.booking import Booking
from villa_booking.services.pricing import ZERO, to_cents


class RefundPolicy(ABC):
    name: str = "abstract"

    @abstractmethod
    def refund_amount(self, booking: Booking, captured_usd: Decimal, actor: Actor, today: date) -> Decimal:
        """Amount to refund, between 0 and captured_usd."""


class FullRefundPolicy(RefundPolicy):
    name = "full"

    def refund_amount(self, booking: Booking, captured_usd: Decimal, actor: Actor, today: date) -> Decimal:
        return to_cents(captured_usd)


class TieredRefundPolicy(RefundPolicy):
    """
    Moderate policy for guest cancellations:
    - Full refund if cancelled 7+ days before check-in
    - 50% refund if cancelled 3-6 days before check-in
    - No refund if cancelled < 3 days before check-in

    Host- and admin-initiated cancellations are always refunded in full.
    """

    name = "tiered"

    def __init__(self, full_days: int = 7, half_days: int = 3):
        self.full_days = full_days
        self.half_days = half_days

    def refund_amount(self, booking: Booking, captured_usd: Decimal, actor: Actor, today: date) -> Decimal:
        if actor.role in ("host", "admin"):
            return to_cents(captured_usd)

        days_until_checkin = (booking.check_in - today).days
        if days_until_checkin >= self.full_days:
            return to_cents(captured_usd)
        if days_until_checkin >= self.half_days:
            return to_cents(captured_usd * Decimal("0.5"))
        return ZERO


def get_refund_policy(name: str) -> RefundPolicy:
    policies = {
        FullRefundPolicy.name: FullRefundPolicy,
        TieredRefundPolicy.name: TieredRefundPolicy,
    }
    policy_class = policies.get(name.lower())
    if policy_class is None:
        raise ValueError(f"Unknown REFUND_POLICY: {name}")
    return policy_class()
