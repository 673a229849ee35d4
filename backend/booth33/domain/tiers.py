"""
Reward tiers and milestones.

Tiers are reached by points. Milestones are derived from activity counts and
pay out credits once when claimed.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Tier:
    key: str
    name: str
    points_required: int
    benefits: tuple[str, ...] = ()


TIERS: tuple[Tier, ...] = (
    Tier("bronze", "Bronze", 0, (
        "5% discount on bookings",
        "Welcome bonus: 10 free credits",
        "Access to community events",
    )),
    Tier("silver", "Silver", 500, (
        "10% discount on bookings",
        "Priority customer support",
        "Early access to new features",
        "Monthly bonus: 5 credits",
    )),
    Tier("gold", "Gold", 2000, (
        "15% discount on bookings",
        "VIP badge on profile",
        "Exclusive gold-tier events",
        "Monthly bonus: 15 credits",
        "Priority booking slots",
    )),
    Tier("platinum", "Platinum", 5000, (
        "25% discount on bookings",
        "Platinum badge on profile",
        "Direct line to studio manager",
        "Monthly bonus: 30 credits",
        "Guaranteed booking availability",
        "Free session every 10 bookings",
    )),
)


def tier_for_points(points: int) -> Tier:
    current = TIERS[0]
    for tier in TIERS:
        if points >= tier.points_required:
            current = tier
    return current


def next_tier(tier: Tier) -> Optional[Tier]:
    index = TIERS.index(tier)
    return TIERS[index + 1] if index + 1 < len(TIERS) else None


def points_to_next_tier(points: int) -> int:
    upcoming = next_tier(tier_for_points(points))
    if upcoming is None:
        return 0
    return upcoming.points_required - points


def tier_progress(points: int) -> int:
    """Percent of the way from the current tier to the next one."""
    current = tier_for_points(points)
    upcoming = next_tier(current)
    if upcoming is None:
        return 100
    span = upcoming.points_required - current.points_required
    return int((points - current.points_required) * 100 / span)


@dataclass(frozen=True)
class Milestone:
    key: str
    title: str
    description: str
    requirement: str  # key into the stats mapping
    count: int
    credits: Decimal


MILESTONES: tuple[Milestone, ...] = (
    Milestone("first_booking", "First Booking", "Complete your first studio session",
              "completed_bookings", 1, Decimal("10")),
    Milestone("studio_regular", "Studio Regular", "Complete 5 studio bookings",
              "completed_bookings", 5, Decimal("25")),
    Milestone("studio_expert", "Studio Expert", "Complete 10 studio bookings",
              "completed_bookings", 10, Decimal("50")),
    Milestone("first_referral", "First Referral", "Refer your first friend to Booth 33",
              "referrals", 1, Decimal("20")),
    Milestone("community_builder", "Community Builder",
              "Successfully refer 5 friends who complete bookings",
              "successful_referrals", 5, Decimal("100")),
    Milestone("streak_master", "Streak Master", "Maintain a 30-day login streak",
              "longest_login_streak", 30, Decimal("30")),
    Milestone("event_enthusiast", "Event Enthusiast", "Attend 10 studio events",
              "events_attended", 10, Decimal("40")),
)

MILESTONES_BY_KEY = {m.key: m for m in MILESTONES}


@dataclass
class MilestoneProgress:
    milestone: Milestone
    current: int
    completed: bool
    claimed: bool = False
    progress: float = field(default=0.0)


def evaluate_milestones(stats: dict[str, int], claimed: set[str]) -> list[MilestoneProgress]:
    results = []
    for milestone in MILESTONES:
        current = stats.get(milestone.requirement, 0)
        results.append(
            MilestoneProgress(
                milestone=milestone,
                current=current,
                completed=current >= milestone.count,
                claimed=milestone.key in claimed,
                progress=round(min(1.0, current / milestone.count) * 100, 1),
            )
        )
    return results
