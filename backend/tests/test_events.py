"""
Tests for event endpoints: admin CRUD and RSVPs.
"""

import pytest
from datetime import date, timedelta
from httpx import AsyncClient


def event_payload(day: date, **overrides) -> dict:
    payload = {
        "name": "Listening Party",
        "type": "listening-party",
        "description": "New album front to back",
        "date": day.isoformat(),
        "time_slot": "6:00 PM",
        "duration": 3,
        "max_attendees": 40,
        "price": "10.00",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient, admin_headers):
    """Admin can create an event; it starts with nobody signed up."""
    day = date.today() + timedelta(days=30)
    response = await client.post("/api/v1/events/", json=event_payload(day), headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Listening Party"
    assert data["max_attendees"] == 40
    assert data["current_attendees"] == 0
    assert data["spots_left"] == 40
    assert data["is_full"] is False


@pytest.mark.asyncio
async def test_created_event_blocks_slots(client: AsyncClient, admin_headers):
    day = date.today() + timedelta(days=30)
    await client.post("/api/v1/events/", json=event_payload(day), headers=admin_headers)

    response = await client.get(
        "/api/v1/bookings/availability", params={"date": day.isoformat(), "duration": 1}
    )
    slots = {s["time"]: s["available"] for s in response.json()["slots"]}
    assert slots["5:00 PM"] is True
    assert slots["6:00 PM"] is False
    assert slots["8:00 PM"] is False
    assert slots["9:00 PM"] is True


@pytest.mark.asyncio
async def test_create_event_unauthenticated(client: AsyncClient):
    """Unauthenticated request returns 401."""
    day = date.today() + timedelta(days=30)
    response = await client.post("/api/v1/events/", json=event_payload(day))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_event_requires_admin(client: AsyncClient, auth_headers):
    day = date.today() + timedelta(days=30)
    response = await client.post("/api/v1/events/", json=event_payload(day), headers=auth_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_event_past_date(client: AsyncClient, admin_headers):
    """Event with past date returns 400."""
    day = date.today() - timedelta(days=1)
    response = await client.post("/api/v1/events/", json=event_payload(day), headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_event_invalid_capacity(client: AsyncClient, admin_headers):
    """Zero attendees returns 422."""
    day = date.today() + timedelta(days=30)
    response = await client.post(
        "/api/v1/events/", json=event_payload(day, max_attendees=0), headers=admin_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_event_unknown_slot(client: AsyncClient, admin_headers):
    day = date.today() + timedelta(days=30)
    response = await client.post(
        "/api/v1/events/", json=event_payload(day, time_slot="11:00 PM"), headers=admin_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_events(client: AsyncClient, test_event):
    """List events returns paginated results."""
    response = await client.get("/api/v1/events/")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["events"][0]["id"] == test_event.id
    assert data["page"] == 1


@pytest.mark.asyncio
async def test_list_events_pagination(client: AsyncClient, admin_headers):
    """Pagination parameters work correctly."""
    start = date.today() + timedelta(days=10)
    for offset in range(3):
        await client.post(
            "/api/v1/events/",
            json=event_payload(start + timedelta(days=offset), name=f"Workshop {offset}", type="workshop"),
            headers=admin_headers,
        )

    response = await client.get("/api/v1/events/?page=2&page_size=2")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["page_size"] == 2
    assert [e["name"] for e in data["events"]] == ["Workshop 2"]


@pytest.mark.asyncio
async def test_get_event(client: AsyncClient, test_event):
    """Get single event by ID."""
    response = await client.get(f"/api/v1/events/{test_event.id}")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == test_event.id
    assert data["name"] == "Open Mic Night"


@pytest.mark.asyncio
async def test_get_event_not_found(client: AsyncClient):
    """Non-existent event returns 404."""
    response = await client.get("/api/v1/events/99999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_event_frees_slots(client: AsyncClient, admin_headers, test_event):
    response = await client.delete(f"/api/v1/events/{test_event.id}", headers=admin_headers)
    assert response.status_code == 204

    assert (await client.get(f"/api/v1/events/{test_event.id}")).status_code == 404
    response = await client.get(
        "/api/v1/bookings/availability", params={"date": test_event.date.isoformat(), "duration": 1}
    )
    assert all(slot["available"] for slot in response.json()["slots"])


@pytest.mark.asyncio
async def test_rsvp(client: AsyncClient, auth_headers, test_event):
    response = await client.post(f"/api/v1/events/{test_event.id}/rsvp", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["rsvpd"] is True
    assert data["current_attendees"] == 1

    status = await client.get(f"/api/v1/events/{test_event.id}/rsvp", headers=auth_headers)
    assert status.json()["rsvpd"] is True


@pytest.mark.asyncio
async def test_double_rsvp_counts_once(client: AsyncClient, auth_headers, test_event):
    """Repeating an RSVP doesn't take a second spot."""
    await client.post(f"/api/v1/events/{test_event.id}/rsvp", headers=auth_headers)
    response = await client.post(f"/api/v1/events/{test_event.id}/rsvp", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["current_attendees"] == 1

    event = await client.get(f"/api/v1/events/{test_event.id}")
    assert event.json()["current_attendees"] == 1
    assert event.json()["spots_left"] == 1


@pytest.mark.asyncio
async def test_rsvp_full_event(
    client: AsyncClient, auth_headers, other_headers, admin_headers, test_event
):
    """Once max_attendees is reached further RSVPs return 409."""
    assert (await client.post(f"/api/v1/events/{test_event.id}/rsvp", headers=auth_headers)).status_code == 200
    assert (await client.post(f"/api/v1/events/{test_event.id}/rsvp", headers=other_headers)).status_code == 200

    response = await client.post(f"/api/v1/events/{test_event.id}/rsvp", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "event_full"

    event = await client.get(f"/api/v1/events/{test_event.id}")
    assert event.json()["current_attendees"] == 2
    assert event.json()["is_full"] is True


@pytest.mark.asyncio
async def test_rsvp_missing_event(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/events/99999/rsvp", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_unrsvp(client: AsyncClient, auth_headers, other_headers, test_event):
    """Withdrawing frees the spot; withdrawing without an RSVP changes nothing."""
    await client.post(f"/api/v1/events/{test_event.id}/rsvp", headers=auth_headers)

    response = await client.delete(f"/api/v1/events/{test_event.id}/rsvp", headers=other_headers)
    assert response.status_code == 200
    assert response.json()["current_attendees"] == 1

    response = await client.delete(f"/api/v1/events/{test_event.id}/rsvp", headers=auth_headers)
    assert response.json()["rsvpd"] is False
    assert response.json()["current_attendees"] == 0


@pytest.mark.asyncio
async def test_attendees_admin_only(
    client: AsyncClient, auth_headers, admin_headers, test_user, test_event
):
    await client.post(f"/api/v1/events/{test_event.id}/rsvp", headers=auth_headers)

    response = await client.get(f"/api/v1/events/{test_event.id}/attendees", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == [test_user.id]

    response = await client.get(f"/api/v1/events/{test_event.id}/attendees", headers=auth_headers)
    assert response.status_code == 403
