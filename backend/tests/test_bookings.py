"""
Tests for booking endpoints including error rendering and concurrency.
"""

import asyncio
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from conftest import CHECK_IN, CHECK_OUT, admin_headers, guest_headers, host_headers
from villa_booking.main import app


def hold_body(villa_id: str, **overrides) -> dict:
    body = {
        "villa_id": villa_id,
        "check_in": CHECK_IN.isoformat(),
        "check_out": CHECK_OUT.isoformat(),
        "adults": 2,
        "children": 1,
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_hold_and_confirm(client: AsyncClient, villa):
    """Hold returns 201 with the priced snapshot; confirm captures it."""
    response = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=guest_headers())
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "in_progress"
    assert Decimal(data["total_usd"]) == Decimal("3905")
    assert Decimal(data["total_fees_usd"]) == Decimal("605")
    assert data["hold_expires_at"] is not None

    response = await client.post(f"/api/v1/bookings/{data['id']}/confirm", headers=guest_headers())
    assert response.status_code == 200
    confirmed = response.json()
    assert confirmed["status"] == "confirmed"
    assert Decimal(confirmed["balance_usd"]) == Decimal("0")


@pytest.mark.asyncio
async def test_hold_without_identity(client: AsyncClient, villa):
    response = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_hold_requires_guest_role(client: AsyncClient, villa):
    response = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=host_headers())
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_hold_conflict_error_body(client: AsyncClient, villa):
    first = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=guest_headers())
    assert first.status_code == 201

    second = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=guest_headers("guest-2"))
    assert second.status_code == 409
    assert second.json()["error"]["code"] == "calendar_conflict"


@pytest.mark.asyncio
async def test_error_body_carries_request_id(client: AsyncClient):
    response = await client.get(
        "/api/v1/bookings/missing",
        headers={**guest_headers(), "X-Request-ID": "req-abc123"},
    )
    assert response.status_code == 404
    assert response.headers["X-Request-ID"] == "req-abc123"
    assert response.json()["error"] == {
        "code": "not_found",
        "message": "Booking missing not found",
        "request_id": "req-abc123",
    }

    # Generated when the caller sends none
    response = await client.get("/api/v1/bookings/missing", headers=guest_headers())
    assert response.json()["error"]["request_id"] == response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_unexpected_error_renders_envelope(client: AsyncClient, manager, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("database on fire")

    monkeypatch.setattr(manager, "list_guest_bookings", broken)

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as raw:
        response = await raw.get(
            "/api/v1/bookings/",
            headers={**guest_headers(), "X-Request-ID": "req-500"},
        )

    assert response.status_code == 500
    assert response.json() == {
        "error": {"code": "internal_error", "message": "Internal server error", "request_id": "req-500"}
    }


@pytest.mark.asyncio
async def test_hold_validation_errors(client: AsyncClient, villa):
    reversed_dates = hold_body(villa.id, check_in=CHECK_OUT.isoformat(), check_out=CHECK_IN.isoformat())
    response = await client.post("/api/v1/bookings/hold", json=reversed_dates, headers=guest_headers())
    assert response.status_code == 422

    response = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id, adults=0), headers=guest_headers())
    assert response.status_code == 422

    response = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id, adults=9), headers=guest_headers())
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "capacity_exceeded"


@pytest.mark.asyncio
async def test_hold_unknown_villa(client: AsyncClient):
    response = await client.post("/api/v1/bookings/hold", json=hold_body("nope"), headers=guest_headers())
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"


@pytest.mark.asyncio
async def test_payment_decline_is_402(client: AsyncClient, villa, gateway):
    gateway.decline_authorizations = True
    response = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=guest_headers())
    assert response.status_code == 402
    assert response.json()["error"]["code"] == "payment_authorization_failed"


@pytest.mark.asyncio
async def test_confirm_expired_hold(client: AsyncClient, villa, clock):
    hold = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=guest_headers())
    clock.advance(minutes=30)

    response = await client.post(f"/api/v1/bookings/{hold.json()['id']}/confirm", headers=guest_headers())
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "hold_expired"


@pytest.mark.asyncio
async def test_confirm_someone_elses_hold(client: AsyncClient, villa):
    hold = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=guest_headers())
    response = await client.post(
        f"/api/v1/bookings/{hold.json()['id']}/confirm",
        headers=guest_headers("guest-2"),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_cancel_confirmed_booking_refunds(client: AsyncClient, villa):
    hold = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=guest_headers())
    booking_id = hold.json()["id"]
    await client.post(f"/api/v1/bookings/{booking_id}/confirm", headers=guest_headers())

    response = await client.post(
        f"/api/v1/bookings/{booking_id}/cancel",
        json={"reason": "family emergency"},
        headers=guest_headers(),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "cancelled"
    assert Decimal(data["refund_amount_usd"]) == Decimal("3905")
    assert data["refund_id"].startswith("re_mock_")

    again = await client.post(f"/api/v1/bookings/{booking_id}/cancel", headers=guest_headers())
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "invalid_state"


@pytest.mark.asyncio
async def test_cancel_without_body(client: AsyncClient, villa):
    hold = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=guest_headers())
    response = await client.post(f"/api/v1/bookings/{hold.json()['id']}/cancel", headers=guest_headers())
    assert response.status_code == 200
    assert Decimal(response.json()["refund_amount_usd"]) == Decimal("0")


@pytest.mark.asyncio
async def test_list_and_get_bookings(client: AsyncClient, villa):
    hold = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=guest_headers())
    booking_id = hold.json()["id"]

    mine = await client.get("/api/v1/bookings/", headers=guest_headers())
    assert [b["id"] for b in mine.json()] == [booking_id]

    other = await client.get("/api/v1/bookings/", headers=guest_headers("guest-2"))
    assert other.json() == []

    response = await client.get(f"/api/v1/bookings/{booking_id}", headers=host_headers())
    assert response.status_code == 200

    response = await client.get(f"/api/v1/bookings/{booking_id}", headers=guest_headers("guest-2"))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_concurrent_holds_one_winner(client: AsyncClient, villa):
    """Ten guests race for the same dates: exactly one hold succeeds."""
    responses = await asyncio.gather(
        *(
            client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=guest_headers(f"guest-{i}"))
            for i in range(10)
        )
    )
    codes = sorted(r.status_code for r in responses)
    assert codes == [201] + [409] * 9


@pytest.mark.asyncio
async def test_admin_refund_and_sweep(client: AsyncClient, villa, clock):
    confirmed = await client.post("/api/v1/bookings/hold", json=hold_body(villa.id), headers=guest_headers())
    booking_id = confirmed.json()["id"]
    await client.post(f"/api/v1/bookings/{booking_id}/confirm", headers=guest_headers())

    stale = await client.post(
        "/api/v1/bookings/hold",
        json=hold_body(villa.id, check_in="2026-04-01", check_out="2026-04-03"),
        headers=guest_headers(),
    )
    assert stale.status_code == 201

    # Admin only
    response = await client.post(f"/api/v1/admin/bookings/{booking_id}/refund", headers=guest_headers())
    assert response.status_code == 403

    response = await client.post(f"/api/v1/admin/bookings/{booking_id}/refund", headers=admin_headers())
    assert response.status_code == 200
    assert Decimal(response.json()["refund_amount_usd"]) == Decimal("3905")

    clock.advance(minutes=20)
    response = await client.post("/api/v1/admin/holds/sweep", headers=admin_headers())
    assert response.status_code == 200
    assert response.json() == {"expired": 1}

    stale_booking = await client.get(f"/api/v1/bookings/{stale.json()['id']}", headers=guest_headers())
    assert stale_booking.json()["status"] == "cancelled"
    assert stale_booking.json()["cancellation_reason"] == "hold_expired"


@pytest.mark.asyncio
async def test_health_and_metrics(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "villa_hold_attempts_total" in response.text
