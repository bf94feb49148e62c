"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from villa_booking.models.booking import BookingStatus, PaymentPlan


class GuestCounts(BaseModel):
    adults: int = Field(default=1, ge=1, le=99)
    children: int = Field(default=0, ge=0, le=99)
    infants: int = Field(default=0, ge=0, le=99)

    @property
    def occupancy(self) -> int:
        """Guests counted against villa capacity (infants excluded)."""
        return self.adults + self.children


class HoldCreate(GuestCounts):
    villa_id: str = Field(..., min_length=1, max_length=36)
    check_in: date
    check_out: date
    payment_plan: Optional[PaymentPlan] = None

    @field_validator("check_out")
    @classmethod
    def check_out_after_check_in(cls, v: date, info) -> date:
        check_in = info.data.get("check_in")
        if check_in and v <= check_in:
            raise ValueError("Check-out must be after check-in")
        return v

    def guest_counts(self) -> GuestCounts:
        return GuestCounts(adults=self.adults, children=self.children, infants=self.infants)


class BookingResponse(BaseModel):
    id: str
    guest_user_id: str
    villa_id: str
    check_in: date
    check_out: date
    adults: int
    children: int
    infants: int
    total_base_usd: Decimal
    total_fees_usd: Decimal
    total_taxes_usd: Decimal
    total_usd: Decimal
    balance_usd: Decimal
    payment_plan: PaymentPlan
    status: BookingStatus
    contract_signed_at: Optional[datetime] = None
    payment_intent_id: Optional[str] = None
    hold_expires_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=255)


class BookingCancelResponse(BaseModel):
    booking_id: str
    status: BookingStatus
    refund_amount_usd: Decimal
    refund_id: Optional[str] = None
