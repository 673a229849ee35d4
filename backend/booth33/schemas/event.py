"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from booth33.domain.statuses import EventType
from booth33.domain.timegrid import SLOTS_PER_DAY, is_valid_label


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: EventType
    description: Optional[str] = Field(None, max_length=1000)
    date: date
    time_slot: str
    duration: int = Field(..., gt=0, le=SLOTS_PER_DAY)
    max_attendees: int = Field(..., gt=0, le=10000)
    price: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    auto_post_to_feed: bool = False

    @field_validator("time_slot")
    @classmethod
    def known_slot(cls, value: str) -> str:
        if not is_valid_label(value):
            raise ValueError("time_slot is not a studio time slot")
        return value


class EventResponse(BaseModel):
    id: int
    name: str
    type: EventType
    description: Optional[str]
    date: date
    time_slot: str
    duration: int
    max_attendees: int
    current_attendees: int
    spots_left: int
    is_full: bool
    price: Decimal
    auto_post_to_feed: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int


class RSVPResponse(BaseModel):
    event_id: int
    rsvpd: bool
    current_attendees: int
    max_attendees: int
