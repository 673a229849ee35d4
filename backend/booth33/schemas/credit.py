"""
Pydantic schemas for studio credits.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from booth33.domain.statuses import CreditTransactionType


class CreditGrant(BaseModel):
    user_id: int
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: str = Field(..., min_length=1, max_length=255)
    granted_by: str = Field("Studio Admin", max_length=100)


class CreditTransactionResponse(BaseModel):
    id: int
    user_id: int
    type: CreditTransactionType
    amount: Decimal
    description: str
    booking_id: Optional[int]
    granted_by: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class CreditBalanceResponse(BaseModel):
    balance: Decimal
    total_granted: Decimal
    total_used: Decimal


class CreditUsageResponse(BaseModel):
    price: Decimal
    credits_to_use: Decimal
    remaining_price: Decimal
    can_cover_full: bool
