"""
Tests for rewards: tiers, login streaks, referrals and milestones.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from booth33.domain.tiers import TIERS, evaluate_milestones, points_to_next_tier, tier_for_points, tier_progress
from booth33.models.event import Event, EventRSVP
from booth33.services.credit_service import CreditService
from booth33.services.event_service import EventService
from booth33.services.rewards_service import RewardsService


def rewards(db: AsyncSession) -> RewardsService:
    return RewardsService(db, CreditService(db), EventService(db))


def test_tier_thresholds():
    assert tier_for_points(0).key == "bronze"
    assert tier_for_points(499).key == "bronze"
    assert tier_for_points(500).key == "silver"
    assert tier_for_points(2000).key == "gold"
    assert tier_for_points(10000).key == "platinum"


def test_tier_progress():
    assert points_to_next_tier(100) == 400
    assert tier_progress(250) == 50
    assert tier_progress(1250) == 50
    assert points_to_next_tier(6000) == 0
    assert tier_progress(6000) == 100


def test_milestone_evaluation():
    progress = {p.milestone.key: p for p in evaluate_milestones(
        {"completed_bookings": 3, "referrals": 1}, claimed={"first_referral"}
    )}
    assert progress["first_booking"].completed is True
    assert progress["studio_regular"].completed is False
    assert progress["studio_regular"].progress == 60.0
    assert progress["first_referral"].claimed is True
    assert progress["streak_master"].current == 0


@pytest.mark.asyncio
async def test_summary(client: AsyncClient, auth_headers):
    response = await client.get("/api/v1/rewards/", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["referral_code"] == "BOOTH33-TESTUSER"
    assert data["referral_link"].endswith("?ref=BOOTH33-TESTUSER")
    assert data["total_points"] == 0
    assert data["current_tier"]["key"] == "bronze"
    assert data["next_tier"]["key"] == "silver"
    assert data["points_to_next_tier"] == 500


@pytest.mark.asyncio
async def test_list_tiers(client: AsyncClient):
    response = await client.get("/api/v1/rewards/tiers")
    assert response.status_code == 200
    assert [t["key"] for t in response.json()] == [t.key for t in TIERS]


@pytest.mark.asyncio
async def test_check_in_streak(db_session: AsyncSession, test_user):
    """Seven consecutive days pays the streak bonus once."""
    service = rewards(db_session)
    start = date(2026, 10, 1)

    for offset in range(6):
        profile, bonus = await service.check_in(test_user.id, start + timedelta(days=offset))
        assert bonus == Decimal("0")
    assert profile.current_login_streak == 6

    profile, bonus = await service.check_in(test_user.id, start + timedelta(days=6))
    assert profile.current_login_streak == 7
    assert bonus == Decimal("5")
    assert await CreditService(db_session).get_balance(test_user.id) == Decimal("5")

    # Same day again changes nothing
    profile, bonus = await service.check_in(test_user.id, start + timedelta(days=6))
    assert profile.current_login_streak == 7
    assert bonus == Decimal("0")


@pytest.mark.asyncio
async def test_missed_day_resets_streak(db_session: AsyncSession, test_user):
    service = rewards(db_session)
    await service.check_in(test_user.id, date(2026, 10, 1))
    await service.check_in(test_user.id, date(2026, 10, 2))
    profile, _ = await service.check_in(test_user.id, date(2026, 10, 4))

    assert profile.current_login_streak == 1
    assert profile.longest_login_streak == 2


@pytest.mark.asyncio
async def test_check_in_endpoint(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/rewards/check-in", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["current_login_streak"] == 1
    assert Decimal(response.json()["bonus_credits"]) == Decimal("0")


@pytest.mark.asyncio
async def test_referral_completion_pays_once(client: AsyncClient, auth_headers, admin_headers):
    response = await client.post(
        "/api/v1/rewards/referrals",
        json={"referred_name": "Jordan", "referred_email": "jordan@example.com"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    referral_id = response.json()["id"]
    assert response.json()["status"] == "pending"

    response = await client.post(f"/api/v1/admin/referrals/{referral_id}/complete", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert Decimal(response.json()["reward_earned"]) == Decimal("20")

    response = await client.post(f"/api/v1/admin/referrals/{referral_id}/complete", headers=admin_headers)
    assert response.status_code == 409

    balance = (await client.get("/api/v1/credits/", headers=auth_headers)).json()
    assert Decimal(balance["balance"]) == Decimal("20")

    summary = (await client.get("/api/v1/rewards/", headers=auth_headers)).json()
    assert summary["total_points"] == 100


@pytest.mark.asyncio
async def test_complete_missing_referral(client: AsyncClient, admin_headers):
    response = await client.post("/api/v1/admin/referrals/99999/complete", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_claim_milestone(client: AsyncClient, auth_headers):
    """A reached milestone pays out once; unreached ones can't be claimed."""
    response = await client.post("/api/v1/rewards/milestones/first_referral/claim", headers=auth_headers)
    assert response.status_code == 409

    await client.post("/api/v1/rewards/referrals", json={"referred_name": "Sam"}, headers=auth_headers)

    milestones = {m["key"]: m for m in (await client.get(
        "/api/v1/rewards/milestones", headers=auth_headers
    )).json()}
    assert milestones["first_referral"]["completed"] is True
    assert milestones["first_referral"]["claimed"] is False

    response = await client.post("/api/v1/rewards/milestones/first_referral/claim", headers=auth_headers)
    assert response.status_code == 200
    assert Decimal(response.json()["credits_earned"]) == Decimal("20")
    assert Decimal(response.json()["balance"]) == Decimal("20")

    response = await client.post("/api/v1/rewards/milestones/first_referral/claim", headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "reward_unavailable"


@pytest.mark.asyncio
async def test_claim_unknown_milestone(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/rewards/milestones/moon_landing/claim", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_events_attended_counts_past_rsvps(db_session: AsyncSession, test_user):
    past = Event(
        name="Listening Party", type="listening-party", date=date(2026, 9, 1), time_slot="6:00 PM",
        duration=2, max_attendees=20, current_attendees=1, price=Decimal("0"), version=1,
    )
    upcoming = Event(
        name="Workshop", type="workshop", date=date(2026, 12, 1), time_slot="10:00 AM",
        duration=2, max_attendees=20, current_attendees=1, price=Decimal("0"), version=1,
    )
    db_session.add_all([past, upcoming])
    await db_session.flush()
    db_session.add_all([
        EventRSVP(event_id=past.id, user_id=test_user.id),
        EventRSVP(event_id=upcoming.id, user_id=test_user.id),
    ])
    await db_session.flush()

    stats = await rewards(db_session).get_stats(test_user.id, today=date(2026, 10, 19))
    assert stats["events_attended"] == 1
    assert stats["completed_bookings"] == 0
