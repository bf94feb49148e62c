"""
Guest booking endpoints: place a hold, confirm it, cancel.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from villa_booking.api.deps import get_booking_manager
from villa_booking.core.security import Actor, get_current_actor, require_role
from villa_booking.schemas.booking import (
    BookingCancelRequest,
    BookingCancelResponse,
    BookingResponse,
    HoldCreate,
)
from villa_booking.services.booking_lifecycle import BookingLifecycleManager

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/hold", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_hold(
    hold_data: HoldCreate,
    actor: Actor = Depends(require_role("guest")),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    """
    Hold a villa for the given dates.

    The dates are reserved and the card authorized for the full total. The
    hold must be confirmed before ``hold_expires_at`` or it is released.
    """
    return await manager.create_hold(
        guest_id=actor.user_id,
        villa_id=hold_data.villa_id,
        check_in=hold_data.check_in,
        check_out=hold_data.check_out,
        guests=hold_data.guest_counts(),
        payment_plan=hold_data.payment_plan,
    )


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(
    booking_id: str,
    actor: Actor = Depends(require_role("guest")),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    """Capture payment and confirm a held booking."""
    return await manager.confirm(booking_id, actor.user_id)


@router.post("/{booking_id}/cancel", response_model=BookingCancelResponse)
async def cancel_booking(
    booking_id: str,
    cancel_data: Optional[BookingCancelRequest] = None,
    actor: Actor = Depends(get_current_actor),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    """Cancel a hold or a confirmed booking; confirmed bookings are refunded per policy."""
    reason = cancel_data.reason if cancel_data else None
    result = await manager.cancel(booking_id, actor, reason)
    return BookingCancelResponse(
        booking_id=result.booking.id,
        status=result.booking.status,
        refund_amount_usd=result.refund_amount_usd,
        refund_id=result.refund_id,
    )


@router.get("/", response_model=list[BookingResponse])
async def list_my_bookings(
    actor: Actor = Depends(get_current_actor),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    return await manager.list_guest_bookings(actor.user_id)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    return await manager.get_booking(booking_id, actor)
