"""
Villa endpoints: availability, price quotes, host calendar and pricing rules.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from villa_booking.api.deps import get_booking_manager, get_container
from villa_booking.core.security import Actor, get_current_actor, require_role
from villa_booking.db.session import get_db
from villa_booking.schemas.booking import GuestCounts
from villa_booking.schemas.calendar import AvailabilityResponse, CalendarBlockCreate, CalendarEventResponse
from villa_booking.schemas.pricing import (
    NightlyRateResponse,
    PriceBreakdownResponse,
    PricingRuleCreate,
    PricingRuleResponse,
)
from villa_booking.services import pricing_rule_service
from villa_booking.services.booking_lifecycle import BookingLifecycleManager
from villa_booking.services.container import ServiceContainer

router = APIRouter(prefix="/villas", tags=["Villas"])


@router.get("/{villa_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    villa_id: str,
    check_in: date = Query(...),
    check_out: date = Query(...),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    available = await manager.get_availability(villa_id, check_in, check_out)
    return AvailabilityResponse(villa_id=villa_id, check_in=check_in, check_out=check_out, available=available)


@router.get("/{villa_id}/price", response_model=PriceBreakdownResponse)
async def get_price(
    villa_id: str,
    check_in: date = Query(...),
    check_out: date = Query(...),
    adults: int = Query(1, ge=1, le=99),
    children: int = Query(0, ge=0, le=99),
    infants: int = Query(0, ge=0, le=99),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    """Quote a stay with per-night rates and the fee/tax breakdown."""
    guests = GuestCounts(adults=adults, children=children, infants=infants)
    price = await manager.compute_price(villa_id, check_in, check_out, guests)
    return PriceBreakdownResponse(
        villa_id=villa_id,
        check_in=check_in,
        check_out=check_out,
        nights=price.nights,
        nightly_rates=[NightlyRateResponse(night=n.night, price_usd=n.price_usd) for n in price.nightly_rates],
        total_base_usd=price.total_base_usd,
        total_fees_usd=price.total_fees_usd,
        total_taxes_usd=price.total_taxes_usd,
        total_usd=price.total_usd,
    )


@router.get("/{villa_id}/calendar", response_model=list[CalendarEventResponse])
async def get_calendar(
    villa_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    return await manager.list_calendar(villa_id, start_date, end_date)


@router.post(
    "/{villa_id}/calendar/blocks",
    response_model=CalendarEventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def block_dates(
    villa_id: str,
    block_data: CalendarBlockCreate,
    actor: Actor = Depends(require_role("host", "admin")),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    """Close dates on the villa's calendar (owner use, maintenance)."""
    return await manager.block_dates(villa_id, block_data.start_date, block_data.end_date, actor, block_data.note)


@router.delete("/{villa_id}/calendar/blocks/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unblock_dates(
    villa_id: str,
    event_id: str,
    actor: Actor = Depends(require_role("host", "admin")),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    await manager.unblock_dates(villa_id, event_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{villa_id}/pricing-rules", response_model=list[PricingRuleResponse])
async def list_pricing_rules(
    villa_id: str,
    db: AsyncSession = Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    return await pricing_rule_service.list_pricing_rules(db, container.catalog, villa_id)


@router.post(
    "/{villa_id}/pricing-rules",
    response_model=PricingRuleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_pricing_rule(
    villa_id: str,
    rule_data: PricingRuleCreate,
    actor: Actor = Depends(require_role("host", "admin")),
    db: AsyncSession = Depends(get_db),
    container: ServiceContainer = Depends(get_container),
):
    return await pricing_rule_service.create_pricing_rule(db, container.catalog, villa_id, rule_data, actor)
