"""
Sandbox payment gateway.

Keeps payment intents in memory and mimics a card provider's manual-capture
flow: authorize -> capture | void, then refunds against the capture. Failure
flags let tests and local runs exercise decline and outage paths.
"""

import asyncio
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from villa_booking.core.exceptions import (
    PaymentAuthorizationError,
    PaymentCaptureError,
    PaymentRefundError,
    PaymentVoidError,
)
from villa_booking.core.logging import get_logger
from villa_booking.services.interfaces.payment_gateway import (
    AuthorizationResult,
    CaptureResult,
    PaymentGateway,
    RefundResult,
)

logger = get_logger(__name__)


@dataclass
class _Intent:
    id: str
    amount_usd: Decimal
    currency: str
    metadata: dict
    status: str = "requires_capture"  # requires_capture, succeeded, canceled
    charge_id: Optional[str] = None
    captured_usd: Decimal = Decimal("0")
    refunded_usd: Decimal = Decimal("0")


class MockPaymentGateway(PaymentGateway):
    def __init__(
        self,
        decline_authorizations: bool = False,
        fail_captures: bool = False,
        fail_voids: bool = False,
        fail_refunds: bool = False,
        latency_seconds: float = 0.0,
    ):
        self.decline_authorizations = decline_authorizations
        self.fail_captures = fail_captures
        self.fail_voids = fail_voids
        self.fail_refunds = fail_refunds
        self.latency_seconds = latency_seconds
        self.intents: dict[str, _Intent] = {}

    async def _network(self) -> None:
        # Yield to the loop like a real HTTP call would
        await asyncio.sleep(self.latency_seconds)

    def _intent(self, payment_intent_id: str, error: type) -> _Intent:
        intent = self.intents.get(payment_intent_id)
        if intent is None:
            raise error(f"Unknown payment intent {payment_intent_id}")
        return intent

    async def authorize(self, amount_usd: Decimal, currency: str, metadata: dict) -> AuthorizationResult:
        await self._network()
        if self.decline_authorizations:
            logger.info("mock_authorization_declined", amount_usd=str(amount_usd))
            raise PaymentAuthorizationError("Card declined")
        if amount_usd <= 0:
            raise PaymentAuthorizationError("Amount must be positive")

        intent = _Intent(
            id=f"pi_mock_{uuid.uuid4().hex[:24]}",
            amount_usd=amount_usd,
            currency=currency,
            metadata=dict(metadata),
        )
        self.intents[intent.id] = intent
        return AuthorizationResult(payment_intent_id=intent.id, amount_usd=amount_usd)

    async def capture(self, payment_intent_id: str, amount_usd: Optional[Decimal] = None) -> CaptureResult:
        await self._network()
        if self.fail_captures:
            raise PaymentCaptureError("Provider unavailable during capture")
        intent = self._intent(payment_intent_id, PaymentCaptureError)

        if intent.status == "succeeded":
            return CaptureResult(charge_id=intent.charge_id, amount_usd=intent.captured_usd)
        if intent.status == "canceled":
            raise PaymentCaptureError("Authorization was voided")

        amount = intent.amount_usd if amount_usd is None else amount_usd
        if amount > intent.amount_usd:
            raise PaymentCaptureError("Capture exceeds authorized amount")

        intent.status = "succeeded"
        intent.charge_id = f"ch_mock_{uuid.uuid4().hex[:24]}"
        intent.captured_usd = amount
        return CaptureResult(charge_id=intent.charge_id, amount_usd=amount)

    async def void(self, payment_intent_id: str) -> None:
        await self._network()
        if self.fail_voids:
            raise PaymentVoidError("Provider unavailable during void")
        intent = self._intent(payment_intent_id, PaymentVoidError)

        if intent.status == "succeeded":
            if intent.refunded_usd >= intent.captured_usd:
                return
            raise PaymentVoidError("Cannot void a captured payment")
        intent.status = "canceled"

    async def refund(self, payment_intent_id: str, amount_usd: Decimal) -> RefundResult:
        await self._network()
        if self.fail_refunds:
            raise PaymentRefundError("Provider unavailable during refund")
        intent = self._intent(payment_intent_id, PaymentRefundError)

        if intent.status != "succeeded":
            raise PaymentRefundError("Nothing captured to refund")
        if intent.refunded_usd + amount_usd > intent.captured_usd:
            raise PaymentRefundError("Refund exceeds captured amount")

        intent.refunded_usd += amount_usd
        return RefundResult(refund_id=f"re_mock_{uuid.uuid4().hex[:24]}", amount_usd=amount_usd)
