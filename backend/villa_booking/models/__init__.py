from villa_booking.models.villa import Villa
from villa_booking.models.calendar_event import CalendarEvent, CalendarEventType
from villa_booking.models.pricing_rule import PricingRule, RuleType
from villa_booking.models.booking import Booking, BookingStatus, PaymentPlan
from villa_booking.models.payment import Payment, PaymentStatus

__all__ = [
    "Villa",
    "CalendarEvent", "CalendarEventType",
    "PricingRule", "RuleType",
    "Booking", "BookingStatus", "PaymentPlan",
    "Payment", "PaymentStatus",
]
