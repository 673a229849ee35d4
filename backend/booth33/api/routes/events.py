"""
Event endpoints: listing, admin management and RSVPs.
"""

from fastapi import APIRouter, Depends, Query, status

from booth33.api.deps import get_event_service
from booth33.core.logging import get_logger
from booth33.core.security import CurrentUser, get_admin_user, get_current_user_id
from booth33.schemas.event import EventCreate, EventListResponse, EventResponse, RSVPResponse
from booth33.services.cache_service import invalidate_availability_cache
from booth33.services.event_service import EventService

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    admin: CurrentUser = Depends(get_admin_user),
    service: EventService = Depends(get_event_service),
):
    """Schedule a studio event. Admin only. The event's slots stop being bookable."""
    event = await service.create_event(event_data, admin.id)
    await invalidate_availability_cache()
    return event


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    upcoming_only: bool = Query(True),
    service: EventService = Depends(get_event_service),
):
    """List events with pagination, soonest first."""
    events, total = await service.list_events(page, page_size, upcoming_only)
    return EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    service: EventService = Depends(get_event_service),
):
    return await service.get_event(event_id)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    event_id: int,
    admin: CurrentUser = Depends(get_admin_user),
    service: EventService = Depends(get_event_service),
):
    await service.delete_event(event_id)
    await invalidate_availability_cache()


@router.get("/{event_id}/rsvp", response_model=RSVPResponse)
async def rsvp_status(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    service: EventService = Depends(get_event_service),
):
    event = await service.get_event(event_id)
    return RSVPResponse(
        event_id=event.id,
        rsvpd=await service.is_rsvpd(event_id, user_id),
        current_attendees=event.current_attendees,
        max_attendees=event.max_attendees,
    )


@router.post("/{event_id}/rsvp", response_model=RSVPResponse)
async def rsvp_endpoint(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    service: EventService = Depends(get_event_service),
):
    """
    Reserve a spot. Repeating the request is harmless.
    Returns 409 when the event is already full.
    """
    event, _ = await service.rsvp(event_id, user_id)
    return RSVPResponse(
        event_id=event.id,
        rsvpd=True,
        current_attendees=event.current_attendees,
        max_attendees=event.max_attendees,
    )


@router.delete("/{event_id}/rsvp", response_model=RSVPResponse)
async def unrsvp_endpoint(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    service: EventService = Depends(get_event_service),
):
    event = await service.unrsvp(event_id, user_id)
    return RSVPResponse(
        event_id=event.id,
        rsvpd=False,
        current_attendees=event.current_attendees,
        max_attendees=event.max_attendees,
    )


@router.get("/{event_id}/attendees", response_model=list[int])
async def list_attendees(
    event_id: int,
    admin: CurrentUser = Depends(get_admin_user),
    service: EventService = Depends(get_event_service),
):
    """User ids of everyone holding an RSVP, in signup order. Admin only."""
    return await service.attendee_ids(event_id)
