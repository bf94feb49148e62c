"""
Operator endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from villa_booking.api.deps import get_booking_manager, get_container
from villa_booking.core.security import Actor, require_role
from villa_booking.schemas.booking import BookingCancelRequest, BookingCancelResponse
from villa_booking.services.booking_lifecycle import BookingLifecycleManager
from villa_booking.services.container import ServiceContainer

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/bookings/{booking_id}/refund", response_model=BookingCancelResponse)
async def refund_booking(
    booking_id: str,
    cancel_data: Optional[BookingCancelRequest] = None,
    actor: Actor = Depends(require_role("admin")),
    manager: BookingLifecycleManager = Depends(get_booking_manager),
):
    """Cancel any booking on the operator's behalf; confirmed bookings are refunded in full."""
    reason = cancel_data.reason if cancel_data and cancel_data.reason else "admin_refund"
    result = await manager.cancel(booking_id, actor, reason)
    return BookingCancelResponse(
        booking_id=result.booking.id,
        status=result.booking.status,
        refund_amount_usd=result.refund_amount_usd,
        refund_id=result.refund_id,
    )


@router.post("/holds/sweep")
async def sweep_expired_holds(
    actor: Actor = Depends(require_role("admin")),
    container: ServiceContainer = Depends(get_container),
):
    """Run one expiry pass now instead of waiting for the background sweeper."""
    expired = await container.sweeper.run_once()
    return {"expired": expired}
