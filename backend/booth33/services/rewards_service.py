"""
Rewards service: referral codes, login streaks, tiers and milestones.

Points only ever go up (referral completions); tiers are derived from points
on read. Milestone progress is computed from live counts every time, and a
claim row per (user, milestone) makes each payout happen once.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from booth33.core.config import get_settings
from booth33.core.exceptions import RewardUnavailableError
from booth33.core.logging import get_logger
from booth33.domain.statuses import BookingStatus, ReferralStatus
from booth33.domain.tiers import (
    MILESTONES_BY_KEY, MilestoneProgress, evaluate_milestones, next_tier, points_to_next_tier,
    tier_for_points, tier_progress,
)
from booth33.models.booking import Booking
from booth33.models.rewards import MilestoneClaim, Referral, RewardProfile
from booth33.models.user import User

logger = get_logger(__name__)
settings = get_settings()


def referral_code(username: str) -> str:
    return f"BOOTH33-{username.upper()}"


def referral_link(username: str) -> str:
    return f"{settings.REFERRAL_BASE_URL}?ref={referral_code(username)}"


class RewardsService:
    def __init__(self, db: AsyncSession, credits, events):
        self.db = db
        self.credits = credits
        self.events = events

    async def get_profile(self, user_id: int) -> RewardProfile:
        result = await self.db.execute(select(RewardProfile).where(RewardProfile.user_id == user_id))
        profile = result.scalar_one_or_none()
        if profile is None:
            profile = RewardProfile(
                user_id=user_id,
                total_points=0,
                current_login_streak=0,
                longest_login_streak=0,
            )
            self.db.add(profile)
            await self.db.flush()
            await self.db.refresh(profile)
        return profile

    async def get_summary(self, user: User) -> dict:
        profile = await self.get_profile(user.id)
        tier = tier_for_points(profile.total_points)
        return {
            "referral_code": referral_code(user.username),
            "referral_link": referral_link(user.username),
            "total_points": profile.total_points,
            "current_tier": tier,
            "next_tier": next_tier(tier),
            "points_to_next_tier": points_to_next_tier(profile.total_points),
            "tier_progress": tier_progress(profile.total_points),
            "current_login_streak": profile.current_login_streak,
            "longest_login_streak": profile.longest_login_streak,
            "last_check_in": profile.last_check_in,
        }

    async def check_in(self, user_id: int, today: Optional[date] = None) -> tuple[RewardProfile, Decimal]:
        """
        Record today's visit. Consecutive days extend the streak, a gap resets
        it to 1, and a second check-in on the same day changes nothing.
        Returns the profile and any streak bonus granted.
        """
        today = today or date.today()
        profile = await self.get_profile(user_id)
        if profile.last_check_in == today:
            return profile, Decimal("0")

        if profile.last_check_in == today - timedelta(days=1):
            profile.current_login_streak += 1
        else:
            profile.current_login_streak = 1
        profile.longest_login_streak = max(profile.longest_login_streak, profile.current_login_streak)
        profile.last_check_in = today
        await self.db.flush()
        await self.db.refresh(profile)

        bonus = Decimal("0")
        if profile.current_login_streak % settings.STREAK_BONUS_INTERVAL_DAYS == 0:
            bonus = settings.STREAK_BONUS_CREDITS
            await self.credits.grant_credits(
                user_id,
                bonus,
                f"{profile.current_login_streak}-Day Login Streak",
                granted_by="Rewards",
            )

        logger.info("check_in", user_id=user_id, streak=profile.current_login_streak,
                    bonus=str(bonus))
        return profile, bonus

    # Referrals

    async def add_referral(self, user_id: int, name: str, email: Optional[str] = None) -> Referral:
        referral = Referral(
            referrer_id=user_id,
            referred_name=name,
            referred_email=email,
            status=ReferralStatus.PENDING.value,
            reward_earned=Decimal("0"),
        )
        self.db.add(referral)
        await self.db.flush()
        await self.db.refresh(referral)
        logger.info("referral_added", referral_id=referral.id, referrer_id=user_id)
        return referral

    async def list_referrals(self, user_id: int) -> list[Referral]:
        result = await self.db.execute(
            select(Referral)
            .where(Referral.referrer_id == user_id)
            .order_by(Referral.created_at.desc(), Referral.id.desc())
        )
        return list(result.scalars().all())

    async def complete_referral(self, referral_id: int) -> Referral:
        """Pay the referrer once the referred friend has booked."""
        result = await self.db.execute(select(Referral).where(Referral.id == referral_id))
        referral = result.scalar_one_or_none()
        if not referral:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Referral not found",
            )
        if referral.status == ReferralStatus.COMPLETED.value:
            raise RewardUnavailableError("Referral has already been completed")

        reward = settings.REFERRAL_REWARD_CREDITS
        await self.credits.grant_credits(
            referral.referrer_id,
            reward,
            f"Referral Bonus - {referral.referred_name}",
            granted_by="Referral Program",
        )
        profile = await self.get_profile(referral.referrer_id)
        profile.total_points += settings.REFERRAL_REWARD_POINTS

        referral.status = ReferralStatus.COMPLETED.value
        referral.reward_earned = reward
        referral.completed_at = datetime.now(timezone.utc)
        await self.db.flush()
        await self.db.refresh(referral)

        logger.info("referral_completed", referral_id=referral.id, referrer_id=referral.referrer_id,
                    reward=str(reward))
        return referral

    # Milestones

    async def get_stats(self, user_id: int, today: Optional[date] = None) -> dict[str, int]:
        completed_bookings = (await self.db.execute(
            select(func.count(Booking.id)).where(
                Booking.user_id == user_id,
                Booking.status == BookingStatus.COMPLETED.value,
            )
        )).scalar() or 0
        referral_counts = dict((await self.db.execute(
            select(Referral.status, func.count(Referral.id))
            .where(Referral.referrer_id == user_id)
            .group_by(Referral.status)
        )).all())
        profile = await self.get_profile(user_id)
        return {
            "completed_bookings": completed_bookings,
            "referrals": sum(referral_counts.values()),
            "successful_referrals": referral_counts.get(ReferralStatus.COMPLETED.value, 0),
            "longest_login_streak": profile.longest_login_streak,
            "events_attended": await self.events.count_attended(user_id, today),
        }

    async def _claimed_keys(self, user_id: int) -> set[str]:
        result = await self.db.execute(
            select(MilestoneClaim.milestone_key).where(MilestoneClaim.user_id == user_id)
        )
        return set(result.scalars().all())

    async def get_milestones(self, user_id: int) -> list[MilestoneProgress]:
        return evaluate_milestones(await self.get_stats(user_id), await self._claimed_keys(user_id))

    async def claim_milestone(self, user_id: int, key: str) -> Decimal:
        """Pay out a completed milestone. Returns the credits granted."""
        if key not in MILESTONES_BY_KEY:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Milestone not found",
            )
        progress = next(p for p in await self.get_milestones(user_id) if p.milestone.key == key)
        if not progress.completed:
            raise RewardUnavailableError("Milestone has not been reached yet")
        if progress.claimed:
            raise RewardUnavailableError("Milestone reward already claimed")

        milestone = progress.milestone
        # uq_milestone_claim rejects a concurrent second claim at flush
        self.db.add(MilestoneClaim(user_id=user_id, milestone_key=key, credits=milestone.credits))
        await self.db.flush()

        await self.credits.grant_credits(user_id, milestone.credits, f"Milestone: {milestone.title}",
                                         granted_by="Rewards")
        logger.info("milestone_claimed", user_id=user_id, milestone=key, credits=str(milestone.credits))
        return milestone.credits
