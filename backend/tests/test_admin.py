"""
Tests for the studio admin workflow: confirming, rejecting and completing
bookings, and delivering the resulting sessions.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient


async def pending_booking(client: AsyncClient, headers: dict, day, time_slot="2:00 PM", duration=2) -> int:
    response = await client.post(
        "/api/v1/bookings/",
        json={"session_type": "music", "date": day.isoformat(), "time_slot": time_slot, "duration": duration},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["booking"]["id"]


@pytest.mark.asyncio
async def test_admin_routes_require_admin(client: AsyncClient, auth_headers):
    assert (await client.get("/api/v1/admin/bookings", headers=auth_headers)).status_code == 403
    assert (await client.get("/api/v1/admin/bookings")).status_code == 401


@pytest.mark.asyncio
async def test_confirm_booking(
    client: AsyncClient, auth_headers, admin_headers, payment_method, booking_day
):
    booking_id = await pending_booking(client, auth_headers, booking_day)

    response = await client.post(f"/api/v1/admin/bookings/{booking_id}/confirm", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"

    # Confirmed bookings keep blocking
    slots = (await client.get(
        "/api/v1/bookings/availability", params={"date": booking_day.isoformat(), "duration": 1}
    )).json()["slots"]
    assert {s["time"]: s["available"] for s in slots}["3:00 PM"] is False

    inbox = (await client.get("/api/v1/notifications/", headers=auth_headers)).json()
    assert inbox[0]["title"] == "Booking Confirmed"
    assert inbox[0]["data"]["booking_id"] == booking_id

    response = await client.post(f"/api/v1/admin/bookings/{booking_id}/confirm", headers=admin_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_confirm_rechecks_events(
    client: AsyncClient, auth_headers, admin_headers, payment_method, booking_day
):
    """An event scheduled over a pending request stops it from being confirmed."""
    booking_id = await pending_booking(client, auth_headers, booking_day)
    await client.post(
        "/api/v1/events/",
        json={
            "name": "Workshop",
            "type": "workshop",
            "date": booking_day.isoformat(),
            "time_slot": "3:00 PM",
            "duration": 1,
            "max_attendees": 10,
        },
        headers=admin_headers,
    )

    response = await client.post(f"/api/v1/admin/bookings/{booking_id}/confirm", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "slot_unavailable"


@pytest.mark.asyncio
async def test_reject_booking(client: AsyncClient, auth_headers, admin_headers, payment_method, booking_day):
    booking_id = await pending_booking(client, auth_headers, booking_day)

    response = await client.post(
        f"/api/v1/admin/bookings/{booking_id}/reject",
        json={"reason": "Studio maintenance"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["cancellation_reason"] == "Studio maintenance"

    inbox = (await client.get("/api/v1/notifications/", headers=auth_headers)).json()
    assert inbox[0]["title"] == "Booking Declined"


@pytest.mark.asyncio
async def test_complete_requires_confirmation(
    client: AsyncClient, auth_headers, admin_headers, payment_method, booking_day
):
    booking_id = await pending_booking(client, auth_headers, booking_day)
    response = await client.post(f"/api/v1/admin/bookings/{booking_id}/complete", headers=admin_headers)
    assert response.status_code == 409

    sessions = (await client.get("/api/v1/admin/sessions", headers=admin_headers)).json()
    assert sessions == []


@pytest.mark.asyncio
async def test_complete_creates_one_session(
    client: AsyncClient, auth_headers, admin_headers, test_user, payment_method, booking_day
):
    """Completing opens a draft session; completing again creates no second one."""
    booking_id = await pending_booking(client, auth_headers, booking_day)
    await client.post(f"/api/v1/admin/bookings/{booking_id}/confirm", headers=admin_headers)

    response = await client.post(f"/api/v1/admin/bookings/{booking_id}/complete", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["booking"]["status"] == "completed"
    session = data["session"]
    assert session["booking_id"] == booking_id
    assert session["user_id"] == test_user.id
    assert session["status"] == "draft"
    assert session["files"] == []
    assert session["name"] == f"Music Session - {booking_day.strftime('%b %d, %Y')}"

    response = await client.post(f"/api/v1/admin/bookings/{booking_id}/complete", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "session_exists"

    sessions = (await client.get("/api/v1/admin/sessions", headers=admin_headers)).json()
    assert len(sessions) == 1


@pytest.mark.asyncio
async def test_list_bookings_with_filters(
    client: AsyncClient, auth_headers, other_headers, other_user, admin_headers,
    payment_method, grant_credits, booking_day,
):
    await grant_credits(other_user, 500)
    mine = await pending_booking(client, auth_headers, booking_day, "9:00 AM", 1)
    theirs = await pending_booking(client, other_headers, booking_day + timedelta(days=1), "9:00 AM", 1)
    await client.post(f"/api/v1/admin/bookings/{theirs}/confirm", headers=admin_headers)

    everything = (await client.get("/api/v1/admin/bookings", headers=admin_headers)).json()
    assert {b["id"] for b in everything} == {mine, theirs}
    assert {b["user_email"] for b in everything} == {"test@example.com", "other@example.com"}

    confirmed = (await client.get(
        "/api/v1/admin/bookings", params={"status": "confirmed"}, headers=admin_headers
    )).json()
    assert [b["id"] for b in confirmed] == [theirs]

    searched = (await client.get(
        "/api/v1/admin/bookings", params={"search": "OTHER@"}, headers=admin_headers
    )).json()
    assert [b["id"] for b in searched] == [theirs]

    ranged = (await client.get(
        "/api/v1/admin/bookings",
        params={"date_from": booking_day.isoformat(), "date_to": booking_day.isoformat()},
        headers=admin_headers,
    )).json()
    assert [b["id"] for b in ranged] == [mine]


@pytest.mark.asyncio
async def test_booking_stats(client: AsyncClient, auth_headers, admin_headers, payment_method, booking_day):
    first = await pending_booking(client, auth_headers, booking_day, "9:00 AM", 1)
    await pending_booking(client, auth_headers, booking_day, "11:00 AM", 2)
    await client.post(f"/api/v1/admin/bookings/{first}/confirm", headers=admin_headers)

    response = await client.get("/api/v1/admin/bookings/stats", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["pending"] == 1
    assert data["confirmed"] == 1
    assert Decimal(data["total_revenue"]) == Decimal("60")


@pytest.mark.asyncio
async def test_booking_transactions(
    client: AsyncClient, auth_headers, admin_headers, payment_method, booking_day
):
    booking_id = await pending_booking(client, auth_headers, booking_day)
    response = await client.get(f"/api/v1/admin/bookings/{booking_id}/transactions", headers=admin_headers)
    assert response.status_code == 200
    assert [Decimal(t["amount"]) for t in response.json()] == [Decimal("120")]


@pytest.mark.asyncio
async def test_session_delivery_flow(
    client: AsyncClient, auth_headers, admin_headers, payment_method, booking_day
):
    """Files move the session to ready; delivery puts it in the user's library."""
    booking_id = await pending_booking(client, auth_headers, booking_day)
    await client.post(f"/api/v1/admin/bookings/{booking_id}/confirm", headers=admin_headers)
    session_id = (await client.post(
        f"/api/v1/admin/bookings/{booking_id}/complete", headers=admin_headers
    )).json()["session"]["id"]

    response = await client.post(f"/api/v1/admin/sessions/{session_id}/deliver", headers=admin_headers)
    assert response.status_code == 400

    response = await client.post(
        f"/api/v1/admin/sessions/{session_id}/files",
        json={"file_name": "take_01.wav", "file_size": "48 MB", "duration": "3:41"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["status"] == "ready_to_deliver"
    assert [f["file_name"] for f in response.json()["files"]] == ["take_01.wav"]

    assert (await client.get("/api/v1/sessions/library", headers=auth_headers)).json() == []

    response = await client.post(f"/api/v1/admin/sessions/{session_id}/deliver", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "delivered"
    assert response.json()["delivered_at"] is not None

    library = (await client.get("/api/v1/sessions/library", headers=auth_headers)).json()
    assert [s["id"] for s in library] == [session_id]
    assert library[0]["files"][0]["file_name"] == "take_01.wav"

    inbox = (await client.get("/api/v1/notifications/", headers=auth_headers)).json()
    assert inbox[0]["type"] == "session_delivered"

    # Delivering again is a no-op
    response = await client.post(f"/api/v1/admin/sessions/{session_id}/deliver", headers=admin_headers)
    assert response.status_code == 200
    assert len((await client.get("/api/v1/notifications/", headers=auth_headers)).json()) == len(inbox)


@pytest.mark.asyncio
async def test_removing_last_file_returns_to_draft(client: AsyncClient, admin_headers, test_user):
    session = (await client.post(
        "/api/v1/admin/sessions",
        json={"user_id": test_user.id, "session_type": "podcast", "session_date": "2026-09-01"},
        headers=admin_headers,
    )).json()
    assert session["name"] == "Podcast Session - Sep 01, 2026"
    assert session["booking_id"] is None

    with_file = (await client.post(
        f"/api/v1/admin/sessions/{session['id']}/files",
        json={"file_name": "episode_12.mp3"},
        headers=admin_headers,
    )).json()
    file_id = with_file["files"][0]["id"]

    response = await client.delete(
        f"/api/v1/admin/sessions/{session['id']}/files/{file_id}", headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "draft"
    assert response.json()["files"] == []


@pytest.mark.asyncio
async def test_session_admin_crud(client: AsyncClient, auth_headers, other_headers, admin_headers, test_user):
    session_id = (await client.post(
        "/api/v1/admin/sessions",
        json={"user_id": test_user.id, "session_type": "music", "name": "Demo tracking"},
        headers=admin_headers,
    )).json()["id"]

    response = await client.patch(
        f"/api/v1/admin/sessions/{session_id}",
        json={"name": "Demo tracking (day 2)", "session_date": date.today().isoformat()},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Demo tracking (day 2)"

    assert (await client.get(f"/api/v1/sessions/{session_id}", headers=auth_headers)).status_code == 200
    assert (await client.get(f"/api/v1/sessions/{session_id}", headers=other_headers)).status_code == 404

    stats = (await client.get("/api/v1/admin/sessions/stats", headers=admin_headers)).json()
    assert stats["total"] == 1
    assert stats["draft"] == 1
    assert stats["total_files"] == 0

    response = await client.delete(f"/api/v1/admin/sessions/{session_id}", headers=admin_headers)
    assert response.status_code == 204
    assert (await client.get(f"/api/v1/sessions/{session_id}", headers=auth_headers)).status_code == 404
