"""
Session library endpoints for the signed-in user.
"""

from fastapi import APIRouter, Depends

from booth33.api.deps import get_session_service
from booth33.core.security import get_current_user_id
from booth33.schemas.studio_session import StudioSessionResponse
from booth33.services.studio_session_service import StudioSessionService

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("/library", response_model=list[StudioSessionResponse])
async def session_library(
    user_id: int = Depends(get_current_user_id),
    service: StudioSessionService = Depends(get_session_service),
):
    """Delivered sessions with their files, newest first."""
    return await service.delivered_for_user(user_id)


@router.get("/{session_id}", response_model=StudioSessionResponse)
async def get_session(
    session_id: int,
    user_id: int = Depends(get_current_user_id),
    service: StudioSessionService = Depends(get_session_service),
):
    return await service.get_session(session_id, user_id)
