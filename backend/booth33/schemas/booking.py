"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from booth33.domain.pricing import DURATION_PRICES
from booth33.domain.statuses import BookingStatus, SessionType
from booth33.domain.timegrid import SLOT_LABELS, is_valid_label
from booth33.schemas.studio_session import StudioSessionResponse


def _check_slot(value: str) -> str:
    if not is_valid_label(value):
        raise ValueError(f"time_slot must be one of: {', '.join(SLOT_LABELS)}")
    return value


def _check_duration(value: int) -> int:
    if value not in DURATION_PRICES:
        allowed = ", ".join(str(h) for h in DURATION_PRICES)
        raise ValueError(f"duration must be one of: {allowed}")
    return value


class BookingCreate(BaseModel):
    session_type: SessionType
    date: date
    time_slot: str
    duration: int = 2
    notes: Optional[str] = Field(None, max_length=500)
    payment_method_id: Optional[int] = None

    _slot = field_validator("time_slot")(_check_slot)
    _duration = field_validator("duration")(_check_duration)


class BookingReschedule(BaseModel):
    date: date
    time_slot: str

    _slot = field_validator("time_slot")(_check_slot)


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingResponse(BaseModel):
    id: int
    user_id: int
    session_type: SessionType
    date: date
    time_slot: str
    duration: int
    price: Decimal
    status: BookingStatus
    notes: Optional[str]
    cancellation_reason: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AdminBookingResponse(BookingResponse):
    user_email: Optional[str] = None
    user_full_name: Optional[str] = None


class BookingCheckoutResponse(BaseModel):
    booking: BookingResponse
    price: Decimal
    credits_applied: Decimal
    amount_charged: Decimal
    payment_transaction_id: Optional[int] = None


class BookingCompleteResponse(BaseModel):
    booking: BookingResponse
    session: StudioSessionResponse


class SlotResponse(BaseModel):
    time: str
    available: bool
    event_id: Optional[int] = None
    event_name: Optional[str] = None


class AvailabilityResponse(BaseModel):
    date: date
    duration: int
    price: Decimal
    slots: list[SlotResponse]
    cached: bool = False


class BookingQuoteResponse(BaseModel):
    duration: int
    price: Decimal
    credits_to_use: Decimal
    remaining_price: Decimal
    can_cover_full: bool


class BookingStatsResponse(BaseModel):
    total: int
    pending: int
    confirmed: int
    completed: int
    cancelled: int
    total_revenue: Decimal
