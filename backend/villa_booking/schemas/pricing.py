"""
Pydantic schemas for price quotes and pricing rules.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from villa_booking.models.pricing_rule import RuleType


class NightlyRateResponse(BaseModel):
    night: date
    price_usd: Decimal

    model_config = {"from_attributes": True}


class PriceBreakdownResponse(BaseModel):
    villa_id: str
    check_in: date
    check_out: date
    nights: int
    nightly_rates: list[NightlyRateResponse]
    total_base_usd: Decimal
    total_fees_usd: Decimal
    total_taxes_usd: Decimal
    total_usd: Decimal


class PricingRuleCreate(BaseModel):
    rule_type: RuleType
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    adjustment_fixed_usd: Optional[Decimal] = None
    adjustment_percent: Optional[Decimal] = Field(None, ge=-100, le=100)
    min_nights: Optional[int] = Field(None, gt=0)
    priority: int = Field(default=10, gt=0)

    @model_validator(mode="after")
    def check_rule(self) -> "PricingRuleCreate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date must be after or equal to start date")
        if self.rule_type is RuleType.MIN_STAY and not self.min_nights:
            raise ValueError("min_stay rules require min_nights")
        return self


class PricingRuleResponse(BaseModel):
    id: str
    villa_id: str
    rule_type: RuleType
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    adjustment_fixed_usd: Optional[Decimal] = None
    adjustment_percent: Optional[Decimal] = None
    min_nights: Optional[int] = None
    priority: int

    model_config = {"from_attributes": True}
