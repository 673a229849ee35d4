"""
Booking endpoints: availability, checkout and the user's own bookings.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from booth33.api.deps import get_booking_service
from booth33.core.exceptions import PaymentFailedError
from booth33.core.logging import get_logger
from booth33.core.security import get_current_user_id
from booth33.db.session import get_db
from booth33.domain.pricing import DURATION_PRICES, price_for_duration
from booth33.domain.statuses import BookingStatus
from booth33.schemas.booking import (
    AvailabilityResponse, BookingCancel, BookingCheckoutResponse, BookingCreate, BookingQuoteResponse,
    BookingReschedule, BookingResponse, SlotResponse,
)
from booth33.services.booking_service import BookingService, Checkout
from booth33.services.cache_service import (
    get_cached_availability, invalidate_availability_cache, set_cached_availability,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _check_duration(duration: int) -> int:
    if duration not in DURATION_PRICES:
        raise HTTPException(
            status_code=422,
            detail=f"duration must be one of: {', '.join(str(h) for h in DURATION_PRICES)}",
        )
    return duration


def _checkout_response(checkout: Checkout) -> BookingCheckoutResponse:
    return BookingCheckoutResponse(
        booking=BookingResponse.model_validate(checkout.booking),
        price=checkout.booking.price,
        credits_applied=checkout.usage.credits_to_use,
        amount_charged=checkout.amount_charged,
        payment_transaction_id=checkout.charge.id if checkout.charge is not None else None,
    )


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    day: date = Query(..., alias="date"),
    duration: int = Query(2),
    service: BookingService = Depends(get_booking_service),
):
    """
    Slot grid for one day.
    Cached in Redis per (date, duration); any booking or event change clears it.
    """
    _check_duration(duration)
    cached = await get_cached_availability(day, duration)
    if cached:
        cached["cached"] = True
        return AvailabilityResponse(**cached)

    slots = await service.get_availability(day, duration)
    response_data = {
        "date": day,
        "duration": duration,
        "price": price_for_duration(duration),
        "slots": [
            SlotResponse(
                time=slot.time,
                available=slot.available,
                event_id=slot.event.id if slot.is_event else None,
                event_name=slot.event.name if slot.is_event else None,
            ).model_dump()
            for slot in slots
        ],
        "cached": False,
    }
    await set_cached_availability(day, duration, response_data)
    return AvailabilityResponse(**response_data)


@router.get("/quote", response_model=BookingQuoteResponse)
async def quote_booking(
    duration: int = Query(...),
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Price for a duration and how much of it the user's credits cover."""
    _check_duration(duration)
    price, usage = await service.quote(user_id, duration)
    return BookingQuoteResponse(
        duration=duration,
        price=price,
        credits_to_use=usage.credits_to_use,
        remaining_price=usage.remaining_price,
        can_cover_full=usage.can_cover_full,
    )


@router.post("/", response_model=BookingCheckoutResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Book studio time.

    Credits are applied first; any remainder is charged to the chosen (or
    default) card. A declined card returns 402 and leaves no booking behind,
    but the failed charge stays on record.
    """
    try:
        checkout = await service.create_booking(user_id, booking_data)
    except PaymentFailedError:
        await db.commit()
        raise
    await invalidate_availability_cache()
    return _checkout_response(checkout)


@router.get("/", response_model=list[BookingResponse])
async def list_user_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Get the authenticated user's bookings, soonest first."""
    return await service.get_user_bookings(user_id, status_filter)


@router.get("/upcoming", response_model=list[BookingResponse])
async def list_upcoming_bookings(
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    return await service.get_upcoming_bookings(user_id)


@router.get("/past", response_model=list[BookingResponse])
async def list_past_bookings(
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    return await service.get_past_bookings(user_id)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    return await service.get_booking(booking_id, user_id)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    body: Optional[BookingCancel] = None,
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel a pending or confirmed booking. Refunds are handled by the studio."""
    booking = await service.cancel_booking(booking_id, user_id, body.reason if body else None)
    await invalidate_availability_cache()
    return booking


@router.patch("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: int,
    body: BookingReschedule,
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Move a pending or confirmed booking to a free slot. Duration and price stay the same."""
    booking = await service.reschedule_booking(booking_id, user_id, body.date, body.time_slot)
    await invalidate_availability_cache()
    return booking
