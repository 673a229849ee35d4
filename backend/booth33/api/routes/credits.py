"""
Credit endpoints for the signed-in user.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query

from booth33.api.deps import get_credit_service
from booth33.core.security import get_current_user_id
from booth33.domain.statuses import CreditTransactionType
from booth33.schemas.credit import CreditBalanceResponse, CreditTransactionResponse, CreditUsageResponse
from booth33.services.credit_service import CreditService

router = APIRouter(prefix="/credits", tags=["Credits"])


@router.get("/", response_model=CreditBalanceResponse)
async def get_balance(
    user_id: int = Depends(get_current_user_id),
    service: CreditService = Depends(get_credit_service),
):
    granted, used = await service.get_totals(user_id)
    return CreditBalanceResponse(
        balance=await service.get_balance(user_id),
        total_granted=granted,
        total_used=used,
    )


@router.get("/transactions", response_model=list[CreditTransactionResponse])
async def list_transactions(
    type: Optional[CreditTransactionType] = Query(None),
    user_id: int = Depends(get_current_user_id),
    service: CreditService = Depends(get_credit_service),
):
    """Ledger entries, newest first. Filter with `type=granted` or `type=used`."""
    return await service.get_history(user_id, type)


@router.get("/usage", response_model=CreditUsageResponse)
async def preview_usage(
    price: Decimal = Query(..., ge=0),
    user_id: int = Depends(get_current_user_id),
    service: CreditService = Depends(get_credit_service),
):
    """How a price would split between credits and card."""
    usage = await service.calculate_usage(user_id, price)
    return CreditUsageResponse(
        price=price,
        credits_to_use=usage.credits_to_use,
        remaining_price=usage.remaining_price,
        can_cover_full=usage.can_cover_full,
    )
