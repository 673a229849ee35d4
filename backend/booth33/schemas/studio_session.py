"""
Pydantic schemas for studio sessions and their delivered files.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from booth33.domain.statuses import SessionType, StudioSessionStatus


class SessionFileCreate(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field("audio", max_length=20)
    file_size: Optional[str] = Field(None, max_length=20)
    duration: Optional[str] = Field(None, max_length=10)


class SessionFileResponse(BaseModel):
    id: int
    file_name: str
    file_type: str
    file_size: Optional[str]
    duration: Optional[str]
    status: str
    uploaded_at: datetime

    model_config = {"from_attributes": True}


class StudioSessionCreate(BaseModel):
    user_id: int
    session_type: SessionType
    name: Optional[str] = Field(None, max_length=255)
    session_date: Optional[date] = None


class StudioSessionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    session_date: Optional[date] = None


class StudioSessionResponse(BaseModel):
    id: int
    user_id: int
    booking_id: Optional[int]
    name: str
    session_type: SessionType
    session_date: date
    status: StudioSessionStatus
    files: list[SessionFileResponse] = []
    created_at: datetime
    delivered_at: Optional[datetime]

    model_config = {"from_attributes": True}


class SessionStatsResponse(BaseModel):
    total: int
    draft: int
    ready_to_deliver: int
    delivered: int
    total_files: int
