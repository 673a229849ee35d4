"""
Payment endpoints: saved cards and the user's charge history.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from booth33.api.deps import get_payment_service
from booth33.core.security import get_current_user_id
from booth33.schemas.payment import PaymentMethodCreate, PaymentMethodResponse, PaymentTransactionResponse
from booth33.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("/methods", response_model=list[PaymentMethodResponse])
async def list_methods(
    user_id: int = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.list_payment_methods(user_id)


@router.post("/methods", response_model=PaymentMethodResponse, status_code=status.HTTP_201_CREATED)
async def add_method(
    data: PaymentMethodCreate,
    user_id: int = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """Save a card. Only the brand and last four digits are kept."""
    return await service.add_payment_method(user_id, data)


@router.get("/methods/default", response_model=Optional[PaymentMethodResponse])
async def get_default_method(
    user_id: int = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    """The card checkout charges when none is chosen, or null."""
    return await service.get_default_payment_method(user_id)


@router.post("/methods/{method_id}/default", response_model=PaymentMethodResponse)
async def set_default_method(
    method_id: int,
    user_id: int = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.set_default_payment_method(user_id, method_id)


@router.delete("/methods/{method_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_method(
    method_id: int,
    user_id: int = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    await service.remove_payment_method(user_id, method_id)


@router.get("/transactions", response_model=list[PaymentTransactionResponse])
async def list_transactions(
    user_id: int = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.get_payment_history(user_id)


@router.get("/transactions/{transaction_id}", response_model=PaymentTransactionResponse)
async def get_transaction(
    transaction_id: int,
    user_id: int = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.get_transaction(transaction_id, user_id)
