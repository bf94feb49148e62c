from villa_booking.schemas.booking import (
    BookingCancelRequest, BookingCancelResponse, BookingResponse, GuestCounts, HoldCreate,
)
from villa_booking.schemas.calendar import AvailabilityResponse, CalendarBlockCreate, CalendarEventResponse
from villa_booking.schemas.pricing import (
    PriceBreakdownResponse, PricingRuleCreate, PricingRuleResponse,
)

__all__ = [
    "BookingCancelRequest", "BookingCancelResponse", "BookingResponse", "GuestCounts", "HoldCreate",
    "AvailabilityResponse", "CalendarBlockCreate", "CalendarEventResponse",
    "PriceBreakdownResponse", "PricingRuleCreate", "PricingRuleResponse",
]
