"""
Pydantic schemas for in-app notifications.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    type: str
    title: str
    message: str
    data: Optional[dict[str, Any]]
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountResponse(BaseModel):
    count: int


class BulkUpdateResponse(BaseModel):
    updated: int
