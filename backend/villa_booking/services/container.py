"""
Wires the booking core together once per process.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from villa_booking.core.config import Settings
from villa_booking.infrastructure.payment_gateway import MockPaymentGateway
from villa_booking.services.booking_lifecycle import BookingLifecycleManager
from villa_booking.services.calendar_store import CalendarStore
from villa_booking.services.hold_sweeper import HoldExpirySweeper
from villa_booking.services.interfaces.payment_gateway import PaymentGateway
from villa_booking.services.refund_policy import get_refund_policy
from villa_booking.services.strategy_factory import get_villa_lock
from villa_booking.services.villa_catalog import VillaCatalog


@dataclass
class ServiceContainer:
    catalog: VillaCatalog
    calendar: CalendarStore
    gateway: PaymentGateway
    manager: BookingLifecycleManager
    sweeper: HoldExpirySweeper


def get_payment_gateway(settings: Settings) -> PaymentGateway:
    if settings.PAYMENT_GATEWAY.lower() == "mock":
        return MockPaymentGateway()
    raise ValueError(f"Unknown PAYMENT_GATEWAY: {settings.PAYMENT_GATEWAY}")


async def build_container(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> ServiceContainer:
    catalog = VillaCatalog()
    calendar = CalendarStore(await get_villa_lock(settings))
    gateway = get_payment_gateway(settings)
    manager = BookingLifecycleManager(
        session_factory=session_factory,
        calendar=calendar,
        catalog=catalog,
        gateway=gateway,
        refund_policy=get_refund_policy(settings.REFUND_POLICY),
        settings=settings,
    )
    sweeper = HoldExpirySweeper(
        manager,
        interval_seconds=settings.SWEEP_INTERVAL_SECONDS,
        batch_size=settings.SWEEP_BATCH_SIZE,
    )
    return ServiceContainer(
        catalog=catalog,
        calendar=calendar,
        gateway=gateway,
        manager=manager,
        sweeper=sweeper,
    )
