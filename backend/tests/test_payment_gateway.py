"""
Tests for the sandbox payment gateway.
"""

from decimal import Decimal

import pytest

from villa_booking.core.exceptions import (
    PaymentAuthorizationError,
    PaymentCaptureError,
    PaymentRefundError,
    PaymentVoidError,
)
from villa_booking.infrastructure.payment_gateway import MockPaymentGateway


@pytest.mark.asyncio
async def test_authorize_capture_refund():
    gateway = MockPaymentGateway()
    auth = await gateway.authorize(Decimal("100.00"), "usd", {"booking_id": "b-1"})
    assert auth.payment_intent_id.startswith("pi_mock_")

    capture = await gateway.capture(auth.payment_intent_id)
    assert capture.amount_usd == Decimal("100.00")

    refund = await gateway.refund(auth.payment_intent_id, Decimal("40.00"))
    assert refund.amount_usd == Decimal("40.00")
    with pytest.raises(PaymentRefundError):
        await gateway.refund(auth.payment_intent_id, Decimal("60.01"))


@pytest.mark.asyncio
async def test_capture_is_idempotent():
    gateway = MockPaymentGateway()
    auth = await gateway.authorize(Decimal("100.00"), "usd", {})

    first = await gateway.capture(auth.payment_intent_id, Decimal("50.00"))
    second = await gateway.capture(auth.payment_intent_id, Decimal("50.00"))
    assert first == second


@pytest.mark.asyncio
async def test_capture_limits():
    gateway = MockPaymentGateway()
    auth = await gateway.authorize(Decimal("100.00"), "usd", {})

    with pytest.raises(PaymentCaptureError):
        await gateway.capture(auth.payment_intent_id, Decimal("100.01"))
    with pytest.raises(PaymentCaptureError):
        await gateway.capture("pi_unknown")


@pytest.mark.asyncio
async def test_void_semantics():
    gateway = MockPaymentGateway()
    auth = await gateway.authorize(Decimal("100.00"), "usd", {})

    await gateway.void(auth.payment_intent_id)
    await gateway.void(auth.payment_intent_id)
    with pytest.raises(PaymentCaptureError):
        await gateway.capture(auth.payment_intent_id)

    captured = await gateway.authorize(Decimal("10.00"), "usd", {})
    await gateway.capture(captured.payment_intent_id)
    with pytest.raises(PaymentVoidError):
        await gateway.void(captured.payment_intent_id)


@pytest.mark.asyncio
async def test_failure_flags():
    gateway = MockPaymentGateway(decline_authorizations=True)
    with pytest.raises(PaymentAuthorizationError):
        await gateway.authorize(Decimal("100.00"), "usd", {})

    gateway.decline_authorizations = False
    auth = await gateway.authorize(Decimal("100.00"), "usd", {})
    gateway.fail_captures = True
    with pytest.raises(PaymentCaptureError):
        await gateway.capture(auth.payment_intent_id)
    assert gateway.intents[auth.payment_intent_id].status == "requires_capture"


@pytest.mark.asyncio
async def test_void_after_full_refund_is_noop():
    gateway = MockPaymentGateway()
    auth = await gateway.authorize(Decimal("100.00"), "usd", {})
    await gateway.capture(auth.payment_intent_id)

    await gateway.refund(auth.payment_intent_id, Decimal("60.00"))
    with pytest.raises(PaymentVoidError):
        await gateway.void(auth.payment_intent_id)

    await gateway.refund(auth.payment_intent_id, Decimal("40.00"))
    await gateway.void(auth.payment_intent_id)
    assert gateway.intents[auth.payment_intent_id].status == "succeeded"
