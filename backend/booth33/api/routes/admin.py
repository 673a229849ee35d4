"""
Studio admin endpoints. Every route requires an admin token.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from booth33.api.deps import (
    get_booking_service, get_credit_service, get_payment_service, get_rewards_service,
    get_session_service,
)
from booth33.core.security import get_admin_user
from booth33.domain.statuses import BookingStatus, SessionType, StudioSessionStatus
from booth33.schemas.booking import (
    AdminBookingResponse, BookingCompleteResponse, BookingResponse, BookingStatsResponse,
)
from booth33.schemas.credit import CreditGrant, CreditTransactionResponse
from booth33.schemas.payment import (
    PaymentTransactionResponse, RefundRequest, RefundResponse, RevenueStatsResponse,
)
from booth33.schemas.rewards import ReferralResponse
from booth33.schemas.studio_session import (
    SessionFileCreate, SessionStatsResponse, StudioSessionCreate, StudioSessionResponse,
    StudioSessionUpdate,
)
from booth33.services.booking_service import BookingService
from booth33.services.cache_service import invalidate_availability_cache
from booth33.services.credit_service import CreditService
from booth33.services.payment_service import PaymentService
from booth33.services.rewards_service import RewardsService
from booth33.services.studio_session_service import StudioSessionService

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(get_admin_user)])


class RejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


# Bookings

@router.get("/bookings", response_model=list[AdminBookingResponse])
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    session_type: Optional[SessionType] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    service: BookingService = Depends(get_booking_service),
):
    rows = await service.list_all_bookings(
        status_filter,
        session_type.value if session_type else None,
        date_from,
        date_to,
        search,
    )
    return [
        AdminBookingResponse(
            **BookingResponse.model_validate(booking).model_dump(),
            user_email=email,
            user_full_name=full_name,
        )
        for booking, email, full_name in rows
    ]


@router.get("/bookings/stats", response_model=BookingStatsResponse)
async def booking_stats(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    return BookingStatsResponse(**await service.get_stats(date_from, date_to))


@router.post("/bookings/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(booking_id: int, service: BookingService = Depends(get_booking_service)):
    booking = await service.confirm_booking(booking_id)
    await invalidate_availability_cache()
    return booking


@router.post("/bookings/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(
    booking_id: int,
    body: Optional[RejectRequest] = None,
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.reject_booking(booking_id, body.reason if body else None)
    await invalidate_availability_cache()
    return booking


@router.post("/bookings/{booking_id}/complete", response_model=BookingCompleteResponse)
async def complete_booking(booking_id: int, service: BookingService = Depends(get_booking_service)):
    """Mark the session as recorded. Opens a draft studio session for file delivery."""
    booking, session = await service.complete_booking(booking_id)
    await invalidate_availability_cache()
    return BookingCompleteResponse(
        booking=BookingResponse.model_validate(booking),
        session=StudioSessionResponse.model_validate(session),
    )


@router.get("/bookings/{booking_id}/transactions", response_model=list[PaymentTransactionResponse])
async def booking_transactions(booking_id: int, service: PaymentService = Depends(get_payment_service)):
    return await service.get_booking_transactions(booking_id)


# Credits

@router.post("/credits/grant", response_model=CreditTransactionResponse, status_code=status.HTTP_201_CREATED)
async def grant_credits(data: CreditGrant, service: CreditService = Depends(get_credit_service)):
    return await service.grant_credits(data.user_id, data.amount, data.description, data.granted_by)


@router.get("/credits/{user_id}/transactions", response_model=list[CreditTransactionResponse])
async def user_credit_history(user_id: int, service: CreditService = Depends(get_credit_service)):
    return await service.get_history(user_id)


# Payments

@router.post("/payments/{transaction_id}/refund", response_model=RefundResponse)
async def refund_transaction(
    transaction_id: int,
    body: Optional[RefundRequest] = None,
    service: PaymentService = Depends(get_payment_service),
):
    """Refund the given amount, or everything still refundable when no amount is sent."""
    txn, refunded = await service.process_refund(transaction_id, body.amount if body else None)
    return RefundResponse(
        transaction=PaymentTransactionResponse.model_validate(txn),
        refunded_amount=refunded,
    )


@router.get("/payments/stats", response_model=RevenueStatsResponse)
async def revenue_stats(service: PaymentService = Depends(get_payment_service)):
    return RevenueStatsResponse(**await service.get_revenue_stats())


# Studio sessions

@router.get("/sessions", response_model=list[StudioSessionResponse])
async def list_sessions(
    status_filter: Optional[StudioSessionStatus] = Query(None, alias="status"),
    user_id: Optional[int] = Query(None),
    service: StudioSessionService = Depends(get_session_service),
):
    return await service.list_sessions(status_filter, user_id)


@router.get("/sessions/stats", response_model=SessionStatsResponse)
async def session_stats(service: StudioSessionService = Depends(get_session_service)):
    return SessionStatsResponse(**await service.get_stats())


@router.post("/sessions", response_model=StudioSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(data: StudioSessionCreate, service: StudioSessionService = Depends(get_session_service)):
    return await service.create_session(data.user_id, data.session_type, data.name, data.session_date)


@router.patch("/sessions/{session_id}", response_model=StudioSessionResponse)
async def update_session(
    session_id: int,
    data: StudioSessionUpdate,
    service: StudioSessionService = Depends(get_session_service),
):
    return await service.update_session(session_id, data.name, data.session_date)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: int, service: StudioSessionService = Depends(get_session_service)):
    await service.delete_session(session_id)


@router.post("/sessions/{session_id}/files", response_model=StudioSessionResponse,
             status_code=status.HTTP_201_CREATED)
async def add_session_file(
    session_id: int,
    data: SessionFileCreate,
    service: StudioSessionService = Depends(get_session_service),
):
    return await service.add_file(session_id, data)


@router.delete("/sessions/{session_id}/files/{file_id}", response_model=StudioSessionResponse)
async def remove_session_file(
    session_id: int,
    file_id: int,
    service: StudioSessionService = Depends(get_session_service),
):
    return await service.remove_file(session_id, file_id)


@router.post("/sessions/{session_id}/deliver", response_model=StudioSessionResponse)
async def deliver_session(session_id: int, service: StudioSessionService = Depends(get_session_service)):
    """Release the files to the user's library and notify them."""
    return await service.deliver(session_id)


# Referrals

@router.post("/referrals/{referral_id}/complete", response_model=ReferralResponse)
async def complete_referral(referral_id: int, service: RewardsService = Depends(get_rewards_service)):
    return await service.complete_referral(referral_id)
