"""
Rewards: points and streaks, referrals, claimed milestones.
"""

from sqlalchemy import (
    CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint,
)

from booth33.db.base import Base, TimestampMixin


class RewardProfile(Base, TimestampMixin):
    __tablename__ = "reward_profiles"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    total_points = Column(Integer, nullable=False, default=0)
    current_login_streak = Column(Integer, nullable=False, default=0)
    longest_login_streak = Column(Integer, nullable=False, default=0)
    last_check_in = Column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<RewardProfile(user={self.user_id}, points={self.total_points})>"


class Referral(Base, TimestampMixin):
    __tablename__ = "referrals"

    id = Column(Integer, primary_key=True, index=True)
    referrer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    referred_name = Column(String(255), nullable=False)
    referred_email = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    reward_earned = Column(Numeric(10, 2), nullable=False, default=0)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'completed')", name="check_referral_status"),
    )

    def __repr__(self) -> str:
        return f"<Referral(id={self.id}, referrer={self.referrer_id}, status={self.status})>"


class MilestoneClaim(Base, TimestampMixin):
    __tablename__ = "milestone_claims"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    milestone_key = Column(String(50), nullable=False)
    credits = Column(Numeric(10, 2), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "milestone_key", name="uq_milestone_claim"),
    )

    def __repr__(self) -> str:
        return f"<MilestoneClaim(user={self.user_id}, milestone={self.milestone_key})>"
