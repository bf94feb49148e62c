"""
Pydantic schemas for availability and calendar endpoints.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from villa_booking.models.calendar_event import CalendarEventType


class CalendarBlockCreate(BaseModel):
    start_date: date
    end_date: date
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, v: date, info) -> date:
        start = info.data.get("start_date")
        if start and v <= start:
            raise ValueError("End date must be after start date")
        return v


class CalendarEventResponse(BaseModel):
    id: str
    villa_id: str
    event_type: CalendarEventType
    start_date: date
    end_date: date
    booking_id: Optional[str] = None
    note: Optional[str] = None

    model_config = {"from_attributes": True}


class AvailabilityResponse(BaseModel):
    villa_id: str
    check_in: date
    check_out: date
    available: bool
