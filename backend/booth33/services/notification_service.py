"""
Notification service: the per-user inbox plus typed helpers the other
services call when something the user cares about happens.
"""

from decimal import Decimal
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from booth33.core.logging import get_logger
from booth33.domain.statuses import BookingStatus, NotificationType
from booth33.models.notification import Notification
from booth33.services.cache_service import publish_notification

logger = get_logger(__name__)

_BOOKING_MESSAGES = {
    BookingStatus.PENDING: (
        "Booking Requested",
        "Your {session} session on {date} at {time} is awaiting confirmation.",
    ),
    BookingStatus.CONFIRMED: (
        "Booking Confirmed",
        "Your {session} session on {date} at {time} has been confirmed.",
    ),
    BookingStatus.CANCELLED: (
        "Booking Declined",
        "Your {session} session on {date} at {time} was declined.",
    ),
    BookingStatus.COMPLETED: (
        "Session Complete",
        "Thanks for recording with us! Your files will appear in your library once delivered.",
    ),
}


def _money(amount) -> str:
    return f"${Decimal(amount):.2f}"


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=NotificationType(type).value,
            title=title,
            message=message,
            data=data,
            read=False,
        )
        self.db.add(notification)
        await self.db.flush()
        await self.db.refresh(notification)

        await publish_notification(user_id, {
            "id": notification.id,
            "type": notification.type,
            "title": title,
            "message": message,
            "data": data,
            "created_at": notification.created_at,
        })
        logger.info("notification_created", notification_id=notification.id, user_id=user_id,
                    type=notification.type)
        return notification

    async def list_for_user(
        self,
        user_id: int,
        limit: int = 50,
        type: Optional[NotificationType] = None,
    ) -> list[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if type is not None:
            query = query.where(Notification.type == NotificationType(type).value)
        result = await self.db.execute(
            query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def unread_count(self, user_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.read.is_(False),
            )
        )
        return result.scalar() or 0

    async def _get_owned(self, user_id: int, notification_id: int) -> Notification:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()
        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notification not found",
            )
        return notification

    async def mark_read(self, user_id: int, notification_id: int) -> Notification:
        notification = await self._get_owned(user_id, notification_id)
        notification.read = True
        await self.db.flush()
        await self.db.refresh(notification)
        return notification

    async def mark_all_read(self, user_id: int) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete(self, user_id: int, notification_id: int) -> None:
        notification = await self._get_owned(user_id, notification_id)
        await self.db.delete(notification)
        await self.db.flush()

    async def delete_all(self, user_id: int) -> int:
        result = await self.db.execute(
            delete(Notification)
            .where(Notification.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # Typed helpers

    async def notify_booking_status(self, booking, reason: Optional[str] = None) -> Notification:
        booking_status = BookingStatus(booking.status)
        title, template = _BOOKING_MESSAGES[booking_status]
        message = template.format(
            session=booking.session_type,
            date=booking.date.strftime("%b %d, %Y"),
            time=booking.time_slot,
        )
        if reason:
            message = f"{message} Reason: {reason}"
        return await self.create(
            booking.user_id,
            NotificationType.BOOKING_STATUS,
            title,
            message,
            {"booking_id": booking.id, "status": booking_status.value},
        )

    async def notify_payment_success(self, user_id: int, amount, description: str,
                                     transaction_id: int) -> Notification:
        return await self.create(
            user_id,
            NotificationType.PAYMENT_SUCCESS,
            "Payment Successful",
            f"Your payment of {_money(amount)} for {description} was processed successfully.",
            {"transaction_id": transaction_id, "amount": str(amount), "result": "completed"},
        )

    async def notify_payment_failed(self, user_id: int, amount, description: str,
                                    transaction_id: int) -> Notification:
        return await self.create(
            user_id,
            NotificationType.PAYMENT_FAILED,
            "Payment Failed",
            f"Your payment of {_money(amount)} for {description} could not be processed. "
            "Please try another card.",
            {"transaction_id": transaction_id, "amount": str(amount), "result": "failed"},
        )

    async def notify_refund(self, user_id: int, amount, transaction_id: int) -> Notification:
        return await self.create(
            user_id,
            NotificationType.REFUND,
            "Refund Processed",
            f"A refund of {_money(amount)} is on its way back to your card.",
            {"transaction_id": transaction_id, "amount": str(amount), "result": "refunded"},
        )

    async def notify_credits_granted(self, user_id: int, amount, reason: str) -> Notification:
        return await self.create(
            user_id,
            NotificationType.CREDITS_GRANTED,
            "Credits Added",
            f"You received {_money(amount)} in studio credits: {reason}",
            {"amount": str(amount)},
        )

    async def notify_session_delivered(self, session) -> Notification:
        return await self.create(
            session.user_id,
            NotificationType.SESSION_DELIVERED,
            "Your Session Files Are Ready",
            f"{session.name} has been delivered to your library.",
            {"session_id": session.id},
        )
