"""
Rewards endpoints: summary, daily check-in, referrals and milestones.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from booth33.api.deps import get_credit_service, get_rewards_service
from booth33.core.security import get_current_user_id
from booth33.db.session import get_db
from booth33.domain.tiers import TIERS
from booth33.schemas.rewards import (
    CheckInResponse, MilestoneClaimResponse, MilestoneResponse, ReferralCreate, ReferralResponse,
    RewardsSummaryResponse, TierResponse,
)
from booth33.services.auth_service import get_user
from booth33.services.credit_service import CreditService
from booth33.services.rewards_service import RewardsService

router = APIRouter(prefix="/rewards", tags=["Rewards"])


@router.get("/", response_model=RewardsSummaryResponse)
async def rewards_summary(
    user_id: int = Depends(get_current_user_id),
    service: RewardsService = Depends(get_rewards_service),
    db: AsyncSession = Depends(get_db),
):
    summary = await service.get_summary(await get_user(db, user_id))
    summary["current_tier"] = TierResponse.model_validate(summary["current_tier"])
    if summary["next_tier"] is not None:
        summary["next_tier"] = TierResponse.model_validate(summary["next_tier"])
    return RewardsSummaryResponse(**summary)


@router.get("/tiers", response_model=list[TierResponse])
async def list_tiers():
    return [TierResponse.model_validate(tier) for tier in TIERS]


@router.post("/check-in", response_model=CheckInResponse)
async def check_in(
    user_id: int = Depends(get_current_user_id),
    service: RewardsService = Depends(get_rewards_service),
):
    """Record today's visit. Every seventh consecutive day pays a credit bonus."""
    profile, bonus = await service.check_in(user_id)
    return CheckInResponse(
        current_login_streak=profile.current_login_streak,
        longest_login_streak=profile.longest_login_streak,
        bonus_credits=bonus,
    )


@router.get("/referrals", response_model=list[ReferralResponse])
async def list_referrals(
    user_id: int = Depends(get_current_user_id),
    service: RewardsService = Depends(get_rewards_service),
):
    return await service.list_referrals(user_id)


@router.post("/referrals", response_model=ReferralResponse, status_code=status.HTTP_201_CREATED)
async def add_referral(
    data: ReferralCreate,
    user_id: int = Depends(get_current_user_id),
    service: RewardsService = Depends(get_rewards_service),
):
    return await service.add_referral(user_id, data.referred_name, data.referred_email)


@router.get("/milestones", response_model=list[MilestoneResponse])
async def list_milestones(
    user_id: int = Depends(get_current_user_id),
    service: RewardsService = Depends(get_rewards_service),
):
    return [
        MilestoneResponse(
            key=p.milestone.key,
            title=p.milestone.title,
            description=p.milestone.description,
            credits=p.milestone.credits,
            count=p.milestone.count,
            current=p.current,
            progress=p.progress,
            completed=p.completed,
            claimed=p.claimed,
        )
        for p in await service.get_milestones(user_id)
    ]


@router.post("/milestones/{key}/claim", response_model=MilestoneClaimResponse)
async def claim_milestone(
    key: str,
    user_id: int = Depends(get_current_user_id),
    service: RewardsService = Depends(get_rewards_service),
    credits: CreditService = Depends(get_credit_service),
):
    earned = await service.claim_milestone(user_id, key)
    return MilestoneClaimResponse(key=key, credits_earned=earned, balance=await credits.get_balance(user_id))
