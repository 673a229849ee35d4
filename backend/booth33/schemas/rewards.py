"""
Pydantic schemas for points, tiers, referrals and milestones.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class TierResponse(BaseModel):
    key: str
    name: str
    points_required: int
    benefits: list[str]

    model_config = {"from_attributes": True}


class RewardsSummaryResponse(BaseModel):
    referral_code: str
    referral_link: str
    total_points: int
    current_tier: TierResponse
    next_tier: Optional[TierResponse]
    points_to_next_tier: int
    tier_progress: int
    current_login_streak: int
    longest_login_streak: int
    last_check_in: Optional[date]


class CheckInResponse(BaseModel):
    current_login_streak: int
    longest_login_streak: int
    bonus_credits: Decimal


class ReferralCreate(BaseModel):
    referred_name: str = Field(..., min_length=2, max_length=255)
    referred_email: Optional[EmailStr] = None


class ReferralResponse(BaseModel):
    id: int
    referrer_id: int
    referred_name: str
    referred_email: Optional[str]
    status: str
    reward_earned: Decimal
    created_at: datetime
    completed_at: Optional[datetime]

    model_config = {"from_attributes": True}


class MilestoneResponse(BaseModel):
    key: str
    title: str
    description: str
    credits: Decimal
    count: int
    current: int
    progress: float
    completed: bool
    claimed: bool


class MilestoneClaimResponse(BaseModel):
    key: str
    credits_earned: Decimal
    balance: Decimal
