"""
Tests for saved cards, charges, refunds and the simulated gateways.
"""

import random
from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from booth33.core.exceptions import PaymentFailedError, PaymentMethodRequired
from booth33.services.interfaces import ApprovingPaymentProcessor, MockPaymentProcessor
from booth33.services.payment_service import PaymentService


def card(number="4242 4242 4242 4242", **overrides) -> dict:
    data = {
        "card_number": number,
        "expiry_month": 12,
        "expiry_year": date.today().year + 2,
        "cvv": "123",
        "holder_name": "Test User",
    }
    data.update(overrides)
    return data


async def charge(client: AsyncClient, headers: dict, day) -> dict:
    response = await client.post(
        "/api/v1/bookings/",
        json={"session_type": "podcast", "date": day.isoformat(), "time_slot": "10:00 AM", "duration": 2},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_add_card_keeps_only_brand_and_last4(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/payments/methods", json=card(), headers=auth_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["brand"] == "visa"
    assert data["last4"] == "4242"
    assert data["is_default"] is True
    assert "card_number" not in data
    assert "cvv" not in data


@pytest.mark.asyncio
async def test_add_invalid_card(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/payments/methods", json=card("4242 4242 4242 4241"), headers=auth_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_default_card_switching(client: AsyncClient, auth_headers):
    first = (await client.post("/api/v1/payments/methods", json=card(), headers=auth_headers)).json()
    second = (await client.post(
        "/api/v1/payments/methods", json=card("5555555555554444"), headers=auth_headers
    )).json()
    assert second["is_default"] is False
    assert second["brand"] == "mastercard"

    response = await client.post(f"/api/v1/payments/methods/{second['id']}/default", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["is_default"] is True

    methods = (await client.get("/api/v1/payments/methods", headers=auth_headers)).json()
    defaults = [m["id"] for m in methods if m["is_default"]]
    assert defaults == [second["id"]]
    assert methods[0]["id"] == second["id"]

    # The default card can't go while another card remains
    response = await client.delete(f"/api/v1/payments/methods/{second['id']}", headers=auth_headers)
    assert response.status_code == 400

    response = await client.delete(f"/api/v1/payments/methods/{first['id']}", headers=auth_headers)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_get_default_card(client: AsyncClient, auth_headers, other_headers, payment_method):
    response = await client.get("/api/v1/payments/methods/default", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["id"] == payment_method.id
    assert response.json()["last4"] == "4242"

    response = await client.get("/api/v1/payments/methods/default", headers=other_headers)
    assert response.status_code == 200
    assert response.json() is None


@pytest.mark.asyncio
async def test_removing_card_keeps_charge_history(
    client: AsyncClient, auth_headers, payment_method, booking_day
):
    await charge(client, auth_headers, booking_day)

    response = await client.delete(f"/api/v1/payments/methods/{payment_method.id}", headers=auth_headers)
    assert response.status_code == 204

    history = (await client.get("/api/v1/payments/transactions", headers=auth_headers)).json()
    assert len(history) == 1
    assert history[0]["payment_method_id"] is None


@pytest.mark.asyncio
async def test_cannot_touch_other_users_card(client: AsyncClient, other_headers, payment_method):
    response = await client.post(f"/api/v1/payments/methods/{payment_method.id}/default", headers=other_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_partial_then_full_refund(
    client: AsyncClient, auth_headers, admin_headers, payment_method, booking_day, processor
):
    """Refunds accumulate; the charge flips to refunded once fully returned."""
    txn_id = (await charge(client, auth_headers, booking_day))["payment_transaction_id"]

    response = await client.post(
        f"/api/v1/admin/payments/{txn_id}/refund", json={"amount": "50"}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["refunded_amount"]) == Decimal("50")
    assert data["transaction"]["status"] == "completed"
    assert Decimal(data["transaction"]["refunded_amount"]) == Decimal("50")

    response = await client.post(
        f"/api/v1/admin/payments/{txn_id}/refund", json={"amount": "80"}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "refund_exceeds_available"

    # No amount refunds whatever is left
    response = await client.post(f"/api/v1/admin/payments/{txn_id}/refund", headers=admin_headers)
    assert response.status_code == 200
    assert Decimal(response.json()["refunded_amount"]) == Decimal("70")
    assert response.json()["transaction"]["status"] == "refunded"
    assert processor.refunds == [Decimal("50"), Decimal("70")]

    response = await client.post(f"/api/v1/admin/payments/{txn_id}/refund", headers=admin_headers)
    assert response.status_code == 400

    inbox = (await client.get("/api/v1/notifications/", headers=auth_headers)).json()
    assert [n["type"] for n in inbox].count("refund") == 2


@pytest.mark.asyncio
async def test_refund_failed_charge(
    client: AsyncClient, auth_headers, admin_headers, payment_method, booking_day, processor
):
    processor.decline_next()
    await client.post(
        "/api/v1/bookings/",
        json={"session_type": "music", "date": booking_day.isoformat(), "time_slot": "9:00 AM", "duration": 1},
        headers=auth_headers,
    )
    txn_id = (await client.get("/api/v1/payments/transactions", headers=auth_headers)).json()[0]["id"]

    response = await client.post(f"/api/v1/admin/payments/{txn_id}/refund", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_revenue_stats(
    client: AsyncClient, auth_headers, admin_headers, payment_method, booking_day
):
    txn_id = (await charge(client, auth_headers, booking_day))["payment_transaction_id"]
    await client.post(f"/api/v1/admin/payments/{txn_id}/refund", json={"amount": "20"}, headers=admin_headers)

    response = await client.get("/api/v1/admin/payments/stats", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["total_revenue"]) == Decimal("120")
    assert Decimal(data["total_refunded"]) == Decimal("20")
    assert Decimal(data["net_revenue"]) == Decimal("100")
    assert data["total_transactions"] == 1


@pytest.mark.asyncio
async def test_transaction_belongs_to_user(
    client: AsyncClient, auth_headers, other_headers, payment_method, booking_day
):
    txn_id = (await charge(client, auth_headers, booking_day))["payment_transaction_id"]
    response = await client.get(f"/api/v1/payments/transactions/{txn_id}", headers=other_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_process_payment_without_card(db_session: AsyncSession, test_user):
    service = PaymentService(db_session, ApprovingPaymentProcessor())
    with pytest.raises(PaymentMethodRequired):
        await service.process_payment(test_user.id, Decimal("60"), "Music Session - 1hr")


@pytest.mark.asyncio
async def test_decline_records_failed_transaction(db_session: AsyncSession, test_user, payment_method):
    processor = MockPaymentProcessor(delay_seconds=0, failure_rate=1.0)
    service = PaymentService(db_session, processor)

    with pytest.raises(PaymentFailedError) as exc_info:
        await service.process_payment(test_user.id, Decimal("60"), "Music Session - 1hr")

    txn = await service.get_transaction(exc_info.value.transaction_id)
    assert txn.status == "failed"
    assert txn.failure_reason == "Card declined"
    assert txn.payment_method_id == payment_method.id


@pytest.mark.asyncio
async def test_mock_processor_is_seedable():
    approving = MockPaymentProcessor(delay_seconds=0, failure_rate=0.0, rng=random.Random(1))
    result = await approving.charge(Decimal("10"), "visa *4242", "Test")
    assert result.approved is True
    assert result.reference.startswith("rcpt_")

    declining = MockPaymentProcessor(delay_seconds=0, failure_rate=1.0)
    assert (await declining.charge(Decimal("10"), "visa *4242", "Test")).approved is False
