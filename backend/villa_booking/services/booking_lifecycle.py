"""
Booking lifecycle: hold -> confirm | expire -> cancel/refund.

ORDERING & COMPENSATION
=======================

create_hold:
  1. price the stay (pure)
  2. reserve a manual_hold calendar event (per-villa lock, committed)
  3. authorize payment (no lock held)
  4. persist the booking as in_progress with a hold deadline
  If 3 fails the reservation is released before the error surfaces.
  If 4 fails the authorization is voided and the reservation released.

confirm:
  capture first, then in ONE transaction: guarded status update,
  promote the calendar event, record the payment. A failed capture leaves
  the hold intact so the guest can retry until the deadline.

expire / cancel:
  void or refund first, then in ONE transaction: guarded status update and
  calendar release. A gateway failure aborts with no state change; the
  sweeper retries expiry on its next pass.

CONCURRENCY STRATEGY: single writer per booking
===============================================

  Every transition runs under an in-process lock keyed by booking id, and
  the write itself is an optimistic UPDATE:

    UPDATE bookings SET status = :new, version = version + 1
    WHERE id = :id AND status = :expected AND version = :version

  If rows_affected == 0 another process moved the booking first and the
  caller gets InvalidStateError. When that happens after a successful
  capture, the capture is refunded.

  The hold deadline is part of the confirm UPDATE as well:

    ... AND (hold_expires_at IS NULL OR hold_expires_at > :now)

  with :now read after the capture returns, so a capture that outlasts the
  hold is refunded and the confirm fails with HoldExpiredError even if the
  sweeper has not run yet.

  A cancel refund is recorded on the payment row in its own transaction
  before the status update. If the update then loses, the refund stays on
  record and booking_refund_reconciliation_total is incremented.
"""

import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from villa_booking.core.config import Settings
from villa_booking.core.exceptions import (
    BookingError,
    CapacityExceededError,
    ConflictError,
    ForbiddenError,
    HoldExpiredError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    PaymentAuthorizationError,
    PaymentCaptureError,
    PaymentGatewayError,
    VillaUnavailableError,
)
from villa_booking.core.logging import get_logger
from villa_booking.core.metrics import (
    hold_latency,
    record_hold_attempt,
    record_transition,
    refund_reconciliation,
    refunds_issued,
)
from villa_booking.core.security import Actor
from villa_booking.db.base import new_id
from villa_booking.infrastructure.keyed_lock import KeyedLock
from villa_booking.models.booking import (
    TERMINAL_STATUSES,
    Booking,
    BookingStatus,
    PaymentPlan,
    ensure_transition,
)
from villa_booking.models.calendar_event import CalendarEvent, CalendarEventType
from villa_booking.models.payment import Payment, PaymentStatus
from villa_booking.models.villa import Villa
from villa_booking.schemas.booking import GuestCounts
from villa_booking.services.calendar_store import CalendarStore
from villa_booking.services.interfaces.payment_gateway import CaptureResult, PaymentGateway
from villa_booking.services.pricing import ZERO, PriceBreakdown, compute_price, stay_nights, to_cents
from villa_booking.services.refund_policy import RefundPolicy
from villa_booking.services.villa_catalog import VillaCatalog

logger = get_logger(__name__)

HOLD_NOTE = "guest hold"
EXPIRED_REASON = "hold_expired"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class CancellationResult:
    booking: Booking
    refund_amount_usd: Decimal
    refund_id: Optional[str] = None


def _hold_result(exc: Exception) -> str:
    if isinstance(exc, ConflictError):
        return "conflict"
    if isinstance(exc, PaymentAuthorizationError):
        return "declined"
    if isinstance(exc, BookingError) and exc.status_code < 500:
        return "invalid"
    return "error"


class BookingLifecycleManager:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        calendar: CalendarStore,
        catalog: VillaCatalog,
        gateway: PaymentGateway,
        refund_policy: RefundPolicy,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
        booking_locks: Optional[KeyedLock] = None,
    ):
        self._session_factory = session_factory
        self.calendar = calendar
        self.catalog = catalog
        self.gateway = gateway
        self.refund_policy = refund_policy
        self.settings = settings
        self._clock = clock
        self._booking_locks = booking_locks or KeyedLock()

    def now(self) -> datetime:
        return self._clock()

    @property
    def hold_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.HOLD_TTL_MINUTES)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _load(self, db: AsyncSession, booking_id: str) -> Booking:
        booking = await db.get(Booking, booking_id, populate_existing=True)
        if booking is None or booking.deleted_at is not None:
            raise NotFoundError(f"Booking {booking_id} not found", booking_id=booking_id)
        return booking

    async def _published_villa(self, db: AsyncSession, villa_id: str, guests: GuestCounts) -> Villa:
        villa = await self.catalog.get_villa(db, villa_id)
        if not villa.published:
            raise VillaUnavailableError(villa_id=villa_id)
        if guests.occupancy > villa.max_guests:
            raise CapacityExceededError(
                f"Villa sleeps at most {villa.max_guests} guests",
                max_guests=villa.max_guests,
                requested=guests.occupancy,
            )
        return villa

    async def get_booking(self, booking_id: str, actor: Actor) -> Booking:
        async with self._session_factory() as db:
            booking = await self._load(db, booking_id)
            if actor.is_admin or booking.guest_user_id == actor.user_id:
                return booking
            villa = await self.catalog.get_villa(db, booking.villa_id)
            if actor.role == "host" and villa.host_user_id == actor.user_id:
                return booking
        raise NotFoundError(f"Booking {booking_id} not found", booking_id=booking_id)

    async def list_guest_bookings(self, guest_id: str) -> list[Booking]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Booking)
                .where(Booking.guest_user_id == guest_id, Booking.deleted_at.is_(None))
                .order_by(Booking.check_in.desc())
            )
            return list(result.scalars().all())

    async def get_availability(self, villa_id: str, start: date, end: date) -> bool:
        async with self._session_factory() as db:
            await self.catalog.get_villa(db, villa_id)
            return await self.calendar.is_available(db, villa_id, start, end)

    async def compute_price(
        self,
        villa_id: str,
        start: date,
        end: date,
        guests: Optional[GuestCounts] = None,
    ) -> PriceBreakdown:
        async with self._session_factory() as db:
            villa = await self._published_villa(db, villa_id, guests or GuestCounts())
            rules = await self.catalog.list_pricing_rules(db, villa_id)
        return compute_price(villa, start, end, rules, self.settings.TAX_RATE)

    async def find_expired_holds(self, limit: int) -> list[str]:
        """Ids of in_progress bookings past their deadline, oldest deadline first."""
        async with self._session_factory() as db:
            result = await db.execute(
                select(Booking.id)
                .where(
                    Booking.status == BookingStatus.IN_PROGRESS.value,
                    Booking.hold_expires_at <= self.now(),
                )
                .order_by(Booking.hold_expires_at.asc())
                .limit(limit)
            )
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Hold
    # ------------------------------------------------------------------

    async def create_hold(
        self,
        guest_id: str,
        villa_id: str,
        check_in: date,
        check_out: date,
        guests: GuestCounts,
        payment_plan: Optional[PaymentPlan] = None,
    ) -> Booking:
        """
        Reserve the dates and authorize payment for a time-limited hold.

        Raises:
            InvalidRangeError, MinStayViolationError, CapacityExceededError
            NotFoundError / VillaUnavailableError: villa missing or unpublished
            ConflictError: dates already taken
            PaymentAuthorizationError: gateway declined (reservation rolled back)
        """
        started = time.perf_counter()
        try:
            booking = await self._place_hold(guest_id, villa_id, check_in, check_out, guests, payment_plan)
        except Exception as e:
            record_hold_attempt(_hold_result(e))
            raise
        finally:
            hold_latency.observe(time.perf_counter() - started)
        record_hold_attempt("success")
        return booking

    async def _place_hold(
        self,
        guest_id: str,
        villa_id: str,
        check_in: date,
        check_out: date,
        guests: GuestCounts,
        payment_plan: Optional[PaymentPlan],
    ) -> Booking:
        stay_nights(check_in, check_out)
        plan = PaymentPlan(payment_plan or self.settings.PAYMENT_PLAN)

        async with self._session_factory() as db:
            villa = await self._published_villa(db, villa_id, guests)
            rules = await self.catalog.list_pricing_rules(db, villa_id)
        price = compute_price(villa, check_in, check_out, rules, self.settings.TAX_RATE)

        booking_id = new_id()
        async with self._session_factory() as db:
            event = await self.calendar.reserve(
                db,
                villa_id,
                check_in,
                check_out,
                CalendarEventType.MANUAL_HOLD,
                booking_id=booking_id,
                note=HOLD_NOTE,
            )

        try:
            authorization = await self.gateway.authorize(
                price.total_usd,
                self.settings.CURRENCY,
                {
                    "booking_id": booking_id,
                    "villa_id": villa_id,
                    "guest_user_id": guest_id,
                    "check_in": check_in.isoformat(),
                    "check_out": check_out.isoformat(),
                },
            )
        except PaymentGatewayError as e:
            logger.info("hold_authorization_failed", booking_id=booking_id, villa_id=villa_id, error=e.message)
            await self._release_event(event.id)
            raise
        except Exception as e:
            logger.error("hold_authorization_error", booking_id=booking_id, villa_id=villa_id, error=str(e))
            await self._release_event(event.id)
            raise InternalError("Payment provider failed, please retry") from e

        booking = Booking(
            id=booking_id,
            guest_user_id=guest_id,
            villa_id=villa_id,
            check_in=check_in,
            check_out=check_out,
            adults=guests.adults,
            children=guests.children,
            infants=guests.infants,
            total_base_usd=price.total_base_usd,
            total_fees_usd=price.total_fees_usd,
            total_taxes_usd=price.total_taxes_usd,
            total_usd=price.total_usd,
            balance_usd=price.total_usd,
            payment_plan=plan.value,
            status=BookingStatus.IN_PROGRESS.value,
            payment_intent_id=authorization.payment_intent_id,
            calendar_event_id=event.id,
            hold_expires_at=self.now() + self.hold_ttl,
            version=1,
        )
        try:
            async with self._session_factory() as db:
                db.add(booking)
                await db.commit()
                await db.refresh(booking)
        except SQLAlchemyError as e:
            logger.error("hold_persist_failed", booking_id=booking_id, error=str(e))
            await self._void_for_compensation(authorization.payment_intent_id, booking_id)
            await self._release_event(event.id)
            raise InternalError("Could not save the hold, please retry") from e

        logger.info(
            "hold_created",
            booking_id=booking.id,
            guest_user_id=guest_id,
            villa_id=villa_id,
            check_in=str(check_in),
            check_out=str(check_out),
            total_usd=str(booking.total_usd),
            expires_at=booking.hold_expires_at.isoformat(),
        )
        return booking

    async def _release_event(self, event_id: str) -> None:
        async with self._session_factory() as db:
            await self.calendar.release(db, event_id)
            await db.commit()

    async def _void_for_compensation(self, payment_intent_id: str, booking_id: str) -> None:
        try:
            await self.gateway.void(payment_intent_id)
        except PaymentGatewayError as e:
            # The original failure is what the caller needs; flag this one for reconciliation
            logger.error(
                "compensating_void_failed",
                booking_id=booking_id,
                payment_intent_id=payment_intent_id,
                error=e.message,
            )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _guarded_update(
        self,
        db: AsyncSession,
        booking: Booking,
        expected: BookingStatus,
        *predicates,
        **values,
    ) -> None:
        result = await db.execute(
            update(Booking)
            .where(
                Booking.id == booking.id,
                Booking.status == expected.value,
                Booking.version == booking.version,
                *predicates,
            )
            .values(version=Booking.version + 1, updated_at=self.now(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.info("booking_transition_lost_race", booking_id=booking.id, expected=expected.value)
            raise InvalidStateError(
                "Booking was changed by another request",
                booking_id=booking.id,
            )

    def _balance_after_confirm(self, booking: Booking) -> Decimal:
        if PaymentPlan(booking.payment_plan) is PaymentPlan.SPLIT:
            return to_cents(Decimal(booking.total_usd) / 2)
        return ZERO

    async def confirm(self, booking_id: str, guest_id: str) -> Booking:
        """
        Capture payment and turn the hold into a confirmed booking.

        Raises:
            NotFoundError, ForbiddenError
            InvalidStateError: not in_progress (HoldExpiredError past the deadline)
            PaymentCaptureError: hold stays intact, guest may retry
            InternalError: calendar promotion failed, retryable
        """
        async with self._booking_locks.acquire(f"booking:{booking_id}"):
            try:
                booking = await self._confirm(booking_id, guest_id)
            except BookingError as e:
                record_transition("confirm", "error" if isinstance(e, (PaymentGatewayError, InternalError)) else "rejected")
                raise
        record_transition("confirm", "success")
        return booking

    async def _confirm(self, booking_id: str, guest_id: str) -> Booking:
        async with self._session_factory() as db:
            booking = await self._load(db, booking_id)

        if booking.guest_user_id != guest_id:
            raise ForbiddenError("Only the guest who placed the hold can confirm it", booking_id=booking_id)
        ensure_transition(booking.status, BookingStatus.CONFIRMED)

        now = self.now()
        if booking.hold_expires_at is not None and now >= as_utc(booking.hold_expires_at):
            raise HoldExpiredError(booking_id=booking_id)

        balance = self._balance_after_confirm(booking)
        upfront = to_cents(Decimal(booking.total_usd) - balance)
        try:
            capture = await self.gateway.capture(booking.payment_intent_id, upfront)
        except PaymentCaptureError as e:
            logger.warning("confirm_capture_failed", booking_id=booking_id, error=e.message)
            raise

        # Re-read: the capture may have outlasted the hold
        now = self.now()
        async with self._session_factory() as db:
            try:
                await self._guarded_update(
                    db,
                    booking,
                    BookingStatus.IN_PROGRESS,
                    or_(Booking.hold_expires_at.is_(None), Booking.hold_expires_at > now),
                    status=BookingStatus.CONFIRMED.value,
                    contract_signed_at=now,
                    balance_usd=balance,
                )
                await self.calendar.promote(db, booking.calendar_event_id, booking.id)
                db.add(
                    Payment(
                        booking_id=booking.id,
                        payment_intent_id=booking.payment_intent_id,
                        charge_id=capture.charge_id,
                        charged_amount_usd=capture.amount_usd,
                        refunded_amount_usd=ZERO,
                        currency=self.settings.CURRENCY.upper(),
                        status=PaymentStatus.SUCCEEDED.value,
                    )
                )
                await db.commit()
            except InvalidStateError as e:
                await db.rollback()
                await self._refund_lost_capture(booking, capture)
                if booking.hold_expires_at is not None and now >= as_utc(booking.hold_expires_at):
                    raise HoldExpiredError(booking_id=booking_id) from e
                raise
            except NotFoundError as e:
                await db.rollback()
                logger.error("confirm_promote_failed", booking_id=booking_id, event_id=booking.calendar_event_id)
                raise InternalError("Could not finalize the calendar, please retry", booking_id=booking_id) from e
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error("confirm_persist_failed", booking_id=booking_id, error=str(e))
                raise InternalError("Could not save the confirmation, please retry", booking_id=booking_id) from e

            confirmed = await self._load(db, booking_id)

        logger.info(
            "booking_confirmed",
            booking_id=booking_id,
            charge_id=capture.charge_id,
            captured_usd=str(capture.amount_usd),
            balance_usd=str(balance),
        )
        return confirmed

    async def _refund_lost_capture(self, booking: Booking, capture: CaptureResult) -> None:
        try:
            await self.gateway.refund(booking.payment_intent_id, capture.amount_usd)
            logger.warning("confirm_capture_refunded", booking_id=booking.id, charge_id=capture.charge_id)
        except PaymentGatewayError as e:
            logger.error(
                "confirm_capture_refund_failed",
                booking_id=booking.id,
                charge_id=capture.charge_id,
                error=e.message,
            )

    async def expire(self, booking_id: str) -> Booking:
        """
        Reclaim a hold whose deadline passed. Already-terminal bookings are a no-op.

        Raises:
            InvalidStateError: confirmed, or deadline not reached
            PaymentVoidError: nothing changed, retry later
        """
        async with self._booking_locks.acquire(f"booking:{booking_id}"):
            async with self._session_factory() as db:
                booking = await self._load(db, booking_id)

            if BookingStatus(booking.status) in TERMINAL_STATUSES:
                logger.debug("expire_noop", booking_id=booking_id, status=booking.status)
                return booking
            if booking.status != BookingStatus.IN_PROGRESS.value:
                record_transition("expire", "rejected")
                raise InvalidStateError(f"Cannot expire a {booking.status} booking", booking_id=booking_id)

            now = self.now()
            if booking.hold_expires_at is None or now < as_utc(booking.hold_expires_at):
                record_transition("expire", "rejected")
                raise InvalidStateError("Hold has not expired yet", booking_id=booking_id)

            try:
                if booking.payment_intent_id:
                    await self.gateway.void(booking.payment_intent_id)
                expired = await self._close(booking, BookingStatus.IN_PROGRESS, now, EXPIRED_REASON)
            except BookingError:
                record_transition("expire", "error")
                raise

        record_transition("expire", "success")
        logger.info("hold_expired", booking_id=booking_id, villa_id=booking.villa_id)
        return expired

    async def _close(
        self,
        booking: Booking,
        expected: BookingStatus,
        now: datetime,
        reason: str,
    ) -> Booking:
        """Mark cancelled and free the dates in one transaction."""
        async with self._session_factory() as db:
            try:
                await self._guarded_update(
                    db,
                    booking,
                    expected,
                    status=BookingStatus.CANCELLED.value,
                    cancelled_at=now,
                    cancellation_reason=reason,
                    balance_usd=ZERO,
                )
                await self.calendar.release(db, booking.calendar_event_id)
                await db.commit()
            except InvalidStateError:
                await db.rollback()
                raise
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error("booking_close_failed", booking_id=booking.id, error=str(e))
                raise InternalError("Could not cancel the booking, please retry", booking_id=booking.id) from e

            return await self._load(db, booking.id)

    async def _payment_for(self, db: AsyncSession, booking_id: str) -> Optional[Payment]:
        result = await db.execute(
            select(Payment).where(Payment.booking_id == booking_id).order_by(Payment.created_at.desc())
        )
        return result.scalars().first()

    async def _record_refund(self, booking: Booking, payment: Payment, amount: Decimal, refund_id: str) -> None:
        """Persist an issued refund before the booking itself changes."""
        async with self._session_factory() as db:
            try:
                await db.execute(
                    update(Payment)
                    .where(Payment.id == payment.id)
                    .values(
                        refunded_amount_usd=Payment.refunded_amount_usd + amount,
                        refund_id=refund_id,
                        status=PaymentStatus.REFUNDED.value,
                    )
                )
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                refund_reconciliation.inc()
                logger.error(
                    "refund_record_failed",
                    booking_id=booking.id,
                    refund_id=refund_id,
                    refund_amount_usd=str(amount),
                    error=str(e),
                )
                raise InternalError("Refund issued but could not be recorded", booking_id=booking.id) from e

    def _authorize_cancel(self, booking: Booking, villa: Villa, actor: Actor) -> None:
        if actor.role not in self.settings.CANCELLATION_ROLES:
            raise ForbiddenError(f"Role {actor.role} may not cancel bookings")
        if actor.role == "guest" and booking.guest_user_id != actor.user_id:
            raise ForbiddenError("Guests may only cancel their own bookings", booking_id=booking.id)
        if actor.role == "host" and villa.host_user_id != actor.user_id:
            raise ForbiddenError("Hosts may only cancel bookings at their villas", booking_id=booking.id)

    async def cancel(self, booking_id: str, actor: Actor, reason: Optional[str] = None) -> CancellationResult:
        """
        Cancel a hold (voids the authorization) or a confirmed booking
        (refunds per the configured policy) and free the dates.

        Raises:
            NotFoundError, ForbiddenError
            InvalidStateError: already cancelled or completed
            PaymentVoidError / PaymentRefundError: nothing changed
        """
        async with self._booking_locks.acquire(f"booking:{booking_id}"):
            try:
                result = await self._cancel(booking_id, actor, reason)
            except BookingError as e:
                record_transition("cancel", "error" if isinstance(e, (PaymentGatewayError, InternalError)) else "rejected")
                raise
        record_transition("cancel", "success")
        return result

    async def _cancel(self, booking_id: str, actor: Actor, reason: Optional[str]) -> CancellationResult:
        async with self._session_factory() as db:
            booking = await self._load(db, booking_id)
            villa = await self.catalog.get_villa(db, booking.villa_id)
            payment = await self._payment_for(db, booking_id)

        self._authorize_cancel(booking, villa, actor)
        ensure_transition(booking.status, BookingStatus.CANCELLED)

        now = self.now()
        status = BookingStatus(booking.status)
        refund_amount = ZERO
        refund_id = None

        if status is BookingStatus.IN_PROGRESS and booking.payment_intent_id:
            await self.gateway.void(booking.payment_intent_id)
        elif status is BookingStatus.CONFIRMED and payment is not None:
            captured = Decimal(payment.charged_amount_usd) - Decimal(payment.refunded_amount_usd)
            refund_amount = min(self.refund_policy.refund_amount(booking, captured, actor, now.date()), captured)
            if refund_amount > 0:
                refund = await self.gateway.refund(booking.payment_intent_id, refund_amount)
                refund_id = refund.refund_id
                refunds_issued.inc()
                await self._record_refund(booking, payment, refund_amount, refund_id)

        try:
            cancelled = await self._close(booking, status, now, reason or f"cancelled_by_{actor.role}")
        except BookingError:
            if refund_id is not None:
                refund_reconciliation.inc()
                logger.error(
                    "refund_issued_but_cancel_failed",
                    booking_id=booking_id,
                    refund_id=refund_id,
                    refund_amount_usd=str(refund_amount),
                )
            raise

        logger.info(
            "booking_cancelled",
            booking_id=booking_id,
            actor_role=actor.role,
            previous_status=status.value,
            refund_amount_usd=str(refund_amount),
            refund_id=refund_id,
        )
        return CancellationResult(booking=cancelled, refund_amount_usd=refund_amount, refund_id=refund_id)

    # ------------------------------------------------------------------
    # Host calendar
    # ------------------------------------------------------------------

    def _authorize_host(self, villa: Villa, actor: Actor) -> None:
        if actor.is_admin:
            return
        if actor.role != "host" or villa.host_user_id != actor.user_id:
            raise ForbiddenError("Only the villa's host can manage its calendar", villa_id=villa.id)

    async def block_dates(
        self,
        villa_id: str,
        start: date,
        end: date,
        actor: Actor,
        note: Optional[str] = None,
    ) -> CalendarEvent:
        async with self._session_factory() as db:
            villa = await self.catalog.get_villa(db, villa_id)
            self._authorize_host(villa, actor)
            event = await self.calendar.reserve(db, villa_id, start, end, CalendarEventType.BLOCKED, note=note)
        logger.info("calendar_blocked", villa_id=villa_id, event_id=event.id, actor=actor.user_id)
        return event

    async def unblock_dates(self, villa_id: str, event_id: str, actor: Actor) -> None:
        async with self._session_factory() as db:
            villa = await self.catalog.get_villa(db, villa_id)
            self._authorize_host(villa, actor)
            event = await self.calendar.get_event(db, event_id)
            if event.villa_id != villa_id:
                raise NotFoundError(f"Calendar event {event_id} not found")
            if event.event_type != CalendarEventType.BLOCKED.value:
                raise InvalidStateError("Only manual blocks can be removed; cancel the booking instead")
            await self.calendar.release(db, event_id)
            await db.commit()
        logger.info("calendar_unblocked", villa_id=villa_id, event_id=event_id, actor=actor.user_id)

    async def list_calendar(self, villa_id: str, start: date, end: date) -> list[CalendarEvent]:
        async with self._session_factory() as db:
            await self.catalog.get_villa(db, villa_id)
            return await self.calendar.list_events(db, villa_id, start, end)
