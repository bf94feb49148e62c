"""
Pytest fixtures for the booking core and the HTTP API.

Each test gets its own SQLite file (aiosqlite), an in-memory payment
gateway and a hand-driven clock so hold expiry can be tested without
sleeping.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from villa_booking.core.config import Settings
from villa_booking.db.base import Base
from villa_booking.db.session import get_db
from villa_booking.infrastructure.payment_gateway import MockPaymentGateway
from villa_booking.main import app
from villa_booking.models.villa import Villa
from villa_booking.schemas.booking import GuestCounts
from villa_booking.services.booking_lifecycle import BookingLifecycleManager
from villa_booking.services.calendar_store import CalendarStore
from villa_booking.services.container import ServiceContainer
from villa_booking.services.hold_sweeper import HoldExpirySweeper
from villa_booking.services.interfaces.local_lock import InProcessVillaLock
from villa_booking.services.refund_policy import get_refund_policy
from villa_booking.services.villa_catalog import VillaCatalog

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

# Monday to Thursday: three weekday nights
CHECK_IN = date(2026, 3, 2)
CHECK_OUT = date(2026, 3, 5)

HOST_ID = "host-1"
GUEST_ID = "guest-1"


class FakeClock:
    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self.current = now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(START)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        HOLD_TTL_MINUTES=15,
        SWEEPER_ENABLED=False,
        SWEEP_BATCH_SIZE=50,
    )


@pytest_asyncio.fixture
async def session_factory(settings: Settings) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create tables, yield a session factory, then drop everything."""
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def gateway() -> MockPaymentGateway:
    return MockPaymentGateway()


@pytest.fixture
def calendar() -> CalendarStore:
    return CalendarStore(InProcessVillaLock())


@pytest.fixture
def manager(session_factory, calendar, gateway, settings, clock) -> BookingLifecycleManager:
    return BookingLifecycleManager(
        session_factory=session_factory,
        calendar=calendar,
        catalog=VillaCatalog(),
        gateway=gateway,
        refund_policy=get_refund_policy(settings.REFUND_POLICY),
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def sweeper(manager: BookingLifecycleManager, settings: Settings) -> HoldExpirySweeper:
    return HoldExpirySweeper(manager, interval_seconds=0.01, batch_size=settings.SWEEP_BATCH_SIZE)


@pytest.fixture
def guests() -> GuestCounts:
    return GuestCounts(adults=2, children=1, infants=1)


async def create_villa(session_factory, **overrides) -> Villa:
    fields = dict(
        host_user_id=HOST_ID,
        title="Villa Serenity",
        published=True,
        base_price_usd_per_night=Decimal("1000.00"),
        cleaning_fee_usd=Decimal("200.00"),
        service_fee_ratio=Decimal("0.1000"),
        damage_waiver_ratio=Decimal("0.0350"),
        max_guests=8,
    )
    fields.update(overrides)
    async with session_factory() as db:
        villa = Villa(**fields)
        db.add(villa)
        await db.commit()
        await db.refresh(villa)
    return villa


@pytest_asyncio.fixture
async def villa(session_factory) -> Villa:
    """Published villa: 1000/night, 200 cleaning, 10% service, 3.5% damage waiver, sleeps 8."""
    return await create_villa(session_factory)


@pytest_asyncio.fixture
async def client(session_factory, manager, calendar, gateway, sweeper) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the test database and services."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.state.container = ServiceContainer(
        catalog=manager.catalog,
        calendar=calendar,
        gateway=gateway,
        manager=manager,
        sweeper=sweeper,
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.container = None


def guest_headers(user_id: str = GUEST_ID) -> dict:
    return {"X-User-Id": user_id, "X-User-Role": "guest"}


def host_headers(user_id: str = HOST_ID) -> dict:
    return {"X-User-Id": user_id, "X-User-Role": "host"}


def admin_headers(user_id: str = "admin-1") -> dict:
    return {"X-User-Id": user_id, "X-User-Role": "admin"}
