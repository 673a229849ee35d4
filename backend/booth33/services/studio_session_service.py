"""
Studio session service: the delivery side of a completed booking.

Status follows the file list:
  draft              no files yet
  ready_to_deliver   at least one file uploaded
  delivered          released to the user's library (set by deliver())
"""

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from booth33.core.exceptions import DomainError
from booth33.core.logging import get_logger
from booth33.domain.statuses import SessionType, StudioSessionStatus
from booth33.models.studio_session import SessionFile, StudioSession
from booth33.schemas.studio_session import SessionFileCreate

logger = get_logger(__name__)


def default_session_name(session_type, session_date: date) -> str:
    kind = "Music" if SessionType(session_type) == SessionType.MUSIC else "Podcast"
    return f"{kind} Session - {session_date.strftime('%b %d, %Y')}"


class StudioSessionService:
    def __init__(self, db: AsyncSession, notifications=None):
        self.db = db
        self.notifications = notifications

    def _query(self):
        return (
            select(StudioSession)
            .options(selectinload(StudioSession.files))
            .execution_options(populate_existing=True)
        )

    async def get_session(self, session_id: int, user_id: Optional[int] = None) -> StudioSession:
        query = self._query().where(StudioSession.id == session_id)
        if user_id is not None:
            query = query.where(StudioSession.user_id == user_id)
        session = (await self.db.execute(query)).scalar_one_or_none()
        if not session:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Session not found",
            )
        return session

    async def get_by_booking(self, booking_id: int) -> Optional[StudioSession]:
        result = await self.db.execute(self._query().where(StudioSession.booking_id == booking_id))
        return result.scalar_one_or_none()

    async def has_session_for_booking(self, booking_id: int) -> bool:
        result = await self.db.execute(
            select(func.count(StudioSession.id)).where(StudioSession.booking_id == booking_id)
        )
        return (result.scalar() or 0) > 0

    async def create_session(
        self,
        user_id: int,
        session_type: SessionType,
        name: Optional[str] = None,
        session_date: Optional[date] = None,
        booking_id: Optional[int] = None,
    ) -> StudioSession:
        session_date = session_date or date.today()
        session = StudioSession(
            user_id=user_id,
            booking_id=booking_id,
            name=name or default_session_name(session_type, session_date),
            session_type=SessionType(session_type).value,
            session_date=session_date,
            status=StudioSessionStatus.DRAFT.value,
        )
        self.db.add(session)
        await self.db.flush()

        logger.info("studio_session_created", session_id=session.id, user_id=user_id,
                    booking_id=booking_id)
        return await self.get_session(session.id)

    async def create_from_booking(self, booking) -> StudioSession:
        return await self.create_session(
            user_id=booking.user_id,
            session_type=booking.session_type,
            session_date=booking.date,
            booking_id=booking.id,
        )

    async def update_session(
        self,
        session_id: int,
        name: Optional[str] = None,
        session_date: Optional[date] = None,
    ) -> StudioSession:
        session = await self.get_session(session_id)
        if name is not None:
            session.name = name
        if session_date is not None:
            session.session_date = session_date
        await self.db.flush()
        return await self.get_session(session_id)

    async def delete_session(self, session_id: int) -> None:
        session = await self.get_session(session_id)
        await self.db.delete(session)
        await self.db.flush()
        logger.info("studio_session_deleted", session_id=session_id)

    async def add_file(self, session_id: int, data: SessionFileCreate) -> StudioSession:
        session = await self.get_session(session_id)
        session.files.append(
            SessionFile(
                file_name=data.file_name,
                file_type=data.file_type,
                file_size=data.file_size,
                duration=data.duration,
                status="ready",
            )
        )
        if session.status == StudioSessionStatus.DRAFT.value:
            session.status = StudioSessionStatus.READY_TO_DELIVER.value
        await self.db.flush()

        logger.info("session_file_added", session_id=session_id, file_name=data.file_name)
        return await self.get_session(session_id)

    async def remove_file(self, session_id: int, file_id: int) -> StudioSession:
        session = await self.get_session(session_id)
        file = next((f for f in session.files if f.id == file_id), None)
        if file is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="File not found",
            )
        session.files.remove(file)
        if not session.files and session.status == StudioSessionStatus.READY_TO_DELIVER.value:
            session.status = StudioSessionStatus.DRAFT.value
        await self.db.flush()

        logger.info("session_file_removed", session_id=session_id, file_id=file_id)
        return await self.get_session(session_id)

    async def deliver(self, session_id: int) -> StudioSession:
        session = await self.get_session(session_id)
        if not session.files:
            raise DomainError("Upload at least one file before delivering")
        if session.status == StudioSessionStatus.DELIVERED.value:
            return session

        session.status = StudioSessionStatus.DELIVERED.value
        session.delivered_at = datetime.now(timezone.utc)
        await self.db.flush()

        logger.info("studio_session_delivered", session_id=session_id, user_id=session.user_id,
                    files=len(session.files))
        if self.notifications is not None:
            await self.notifications.notify_session_delivered(session)
        return await self.get_session(session_id)

    async def list_sessions(
        self,
        status_filter: Optional[StudioSessionStatus] = None,
        user_id: Optional[int] = None,
    ) -> list[StudioSession]:
        query = self._query()
        if status_filter is not None:
            query = query.where(StudioSession.status == StudioSessionStatus(status_filter).value)
        if user_id is not None:
            query = query.where(StudioSession.user_id == user_id)
        result = await self.db.execute(
            query.order_by(StudioSession.created_at.desc(), StudioSession.id.desc())
        )
        return list(result.scalars().all())

    async def delivered_for_user(self, user_id: int) -> list[StudioSession]:
        return await self.list_sessions(StudioSessionStatus.DELIVERED, user_id)

    async def get_stats(self) -> dict:
        result = await self.db.execute(
            select(StudioSession.status, func.count(StudioSession.id)).group_by(StudioSession.status)
        )
        by_status = dict(result.all())
        total_files = (await self.db.execute(select(func.count(SessionFile.id)))).scalar() or 0
        return {
            "total": sum(by_status.values()),
            "draft": by_status.get(StudioSessionStatus.DRAFT.value, 0),
            "ready_to_deliver": by_status.get(StudioSessionStatus.READY_TO_DELIVER.value, 0),
            "delivered": by_status.get(StudioSessionStatus.DELIVERED.value, 0),
            "total_files": total_files,
        }
