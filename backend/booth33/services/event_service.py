"""
Event service handling CRUD and RSVPs.

RSVP capacity uses the same optimistic locking pattern as credit balances:

  UPDATE events SET current_attendees = current_attendees + 1, version = version + 1
  WHERE id = :event_id AND version = :current_version
    AND current_attendees < max_attendees

If no row matched we re-read the event: either it is full now (EventFullError)
or another RSVP won the race and we retry. The unique (event_id, user_id)
constraint keeps one RSVP per user, and the CHECK constraint
(current_attendees <= max_attendees) is the final safety net.
"""

from datetime import date
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from booth33.core.exceptions import EventFullError
from booth33.core.logging import get_logger
from booth33.core.metrics import db_retries, rsvp_requests
from booth33.models.event import Event, EventRSVP
from booth33.schemas.event import EventCreate

logger = get_logger(__name__)

MAX_RETRY_ATTEMPTS = 3


class EventService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_event(
        self,
        event_data: EventCreate,
        created_by: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Event:
        """Create a new event with no attendees."""
        if event_data.date < (today or date.today()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Event date cannot be in the past",
            )

        event = Event(
            name=event_data.name,
            type=event_data.type.value,
            description=event_data.description,
            date=event_data.date,
            time_slot=event_data.time_slot,
            duration=event_data.duration,
            max_attendees=event_data.max_attendees,
            current_attendees=0,
            price=event_data.price,
            auto_post_to_feed=event_data.auto_post_to_feed,
            created_by=created_by,
            version=1,
        )
        self.db.add(event)
        await self.db.flush()
        await self.db.refresh(event)

        logger.info("event_created", event_id=event.id, name=event.name, date=str(event.date),
                    time=event.time_slot, max_attendees=event.max_attendees)
        return event

    async def get_event(self, event_id: int) -> Event:
        """Get a single event by ID."""
        result = await self.db.execute(
            select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
        )
        event = result.scalar_one_or_none()

        if not event:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Event {event_id} not found",
            )
        return event

    async def list_events(
        self,
        page: int = 1,
        page_size: int = 20,
        upcoming_only: bool = True,
        today: Optional[date] = None,
    ) -> tuple[list[Event], int]:
        """
        List events with pagination.
        Uses the ix_events_date index for date filtering.
        """
        query = select(Event)

        if upcoming_only:
            query = query.where(Event.date >= (today or date.today()))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar()

        events_query = (
            query
            .order_by(Event.date.asc(), Event.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(events_query)
        return list(result.scalars().all()), total

    async def events_on(self, day: date) -> list[Event]:
        result = await self.db.execute(select(Event).where(Event.date == day))
        return list(result.scalars().all())

    async def delete_event(self, event_id: int) -> None:
        event = await self.get_event(event_id)
        await self.db.execute(delete(EventRSVP).where(EventRSVP.event_id == event_id))
        await self.db.delete(event)
        await self.db.flush()
        logger.info("event_deleted", event_id=event_id)

    async def _get_rsvp(self, event_id: int, user_id: int) -> Optional[EventRSVP]:
        result = await self.db.execute(
            select(EventRSVP).where(EventRSVP.event_id == event_id, EventRSVP.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def is_rsvpd(self, event_id: int, user_id: int) -> bool:
        return await self._get_rsvp(event_id, user_id) is not None

    async def rsvp(self, event_id: int, user_id: int) -> tuple[Event, bool]:
        """
        Reserve a spot. Returns (event, added). A repeat RSVP by the same user
        is a no-op that returns added=False.
        """
        event = await self.get_event(event_id)
        if await self._get_rsvp(event_id, user_id):
            rsvp_requests.labels(result="duplicate").inc()
            return event, False

        for attempt in range(1, MAX_RETRY_ATTEMPTS + 1):
            if attempt > 1:
                event = await self.get_event(event_id)

            if event.is_full:
                rsvp_requests.labels(result="full").inc()
                logger.warning("rsvp_failed_event_full", event_id=event_id, user_id=user_id,
                               attendees=event.current_attendees, max_attendees=event.max_attendees)
                raise EventFullError("Event is full")

            current_version = event.version
            update_result = await self.db.execute(
                update(Event)
                .where(
                    Event.id == event_id,
                    Event.version == current_version,
                    Event.current_attendees < Event.max_attendees,
                )
                .values(
                    current_attendees=Event.current_attendees + 1,
                    version=Event.version + 1,
                )
                .execution_options(synchronize_session=False)
            )

            if update_result.rowcount == 0:
                logger.info("rsvp_retry", event_id=event_id, attempt=attempt, reason="version_conflict")
                db_retries.labels(entity="event").inc()
                continue

            self.db.add(EventRSVP(event_id=event_id, user_id=user_id))
            await self.db.flush()
            event = await self.get_event(event_id)

            rsvp_requests.labels(result="added").inc()
            logger.info("rsvp_added", event_id=event_id, user_id=user_id,
                        attendees=event.current_attendees, attempt=attempt)
            return event, True

        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="RSVP failed due to high demand. Please try again.",
        )

    async def unrsvp(self, event_id: int, user_id: int) -> Event:
        """Withdraw an RSVP. Withdrawing one that doesn't exist changes nothing."""
        event = await self.get_event(event_id)
        rsvp = await self._get_rsvp(event_id, user_id)
        if rsvp is None:
            return event

        await self.db.delete(rsvp)
        await self.db.execute(
            update(Event)
            .where(Event.id == event_id, Event.current_attendees > 0)
            .values(
                current_attendees=Event.current_attendees - 1,
                version=Event.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.flush()
        event = await self.get_event(event_id)

        rsvp_requests.labels(result="removed").inc()
        logger.info("rsvp_removed", event_id=event_id, user_id=user_id,
                    attendees=event.current_attendees)
        return event

    async def attendee_ids(self, event_id: int) -> list[int]:
        await self.get_event(event_id)
        result = await self.db.execute(
            select(EventRSVP.user_id)
            .where(EventRSVP.event_id == event_id)
            .order_by(EventRSVP.created_at.asc(), EventRSVP.id.asc())
        )
        return list(result.scalars().all())

    async def count_attended(self, user_id: int, today: Optional[date] = None) -> int:
        """RSVPs the user holds for events that have already happened."""
        result = await self.db.execute(
            select(func.count(EventRSVP.id))
            .join(Event, Event.id == EventRSVP.event_id)
            .where(EventRSVP.user_id == user_id, Event.date < (today or date.today()))
        )
        return result.scalar() or 0
