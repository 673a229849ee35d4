"""
Service wiring for route handlers.

Each factory builds one service around the request's AsyncSession. FastAPI
caches dependencies per request, so every service in a request shares the
same session and therefore the same transaction.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from booth33.db.session import get_db
from booth33.services.booking_service import BookingService
from booth33.services.credit_service import CreditService
from booth33.services.event_service import EventService
from booth33.services.interfaces import PaymentProcessor
from booth33.services.notification_service import NotificationService
from booth33.services.payment_service import PaymentService
from booth33.services.rewards_service import RewardsService
from booth33.services.strategy_factory import get_payment_processor
from booth33.services.studio_session_service import StudioSessionService


def get_notification_service(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_credit_service(
    db: AsyncSession = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
) -> CreditService:
    return CreditService(db, notifications)


def get_payment_service(
    db: AsyncSession = Depends(get_db),
    processor: PaymentProcessor = Depends(get_payment_processor),
    notifications: NotificationService = Depends(get_notification_service),
) -> PaymentService:
    return PaymentService(db, processor, notifications)


def get_event_service(db: AsyncSession = Depends(get_db)) -> EventService:
    return EventService(db)


def get_session_service(
    db: AsyncSession = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
) -> StudioSessionService:
    return StudioSessionService(db, notifications)


def get_booking_service(
    db: AsyncSession = Depends(get_db),
    credits: CreditService = Depends(get_credit_service),
    payments: PaymentService = Depends(get_payment_service),
    notifications: NotificationService = Depends(get_notification_service),
    sessions: StudioSessionService = Depends(get_session_service),
    events: EventService = Depends(get_event_service),
) -> BookingService:
    return BookingService(db, credits, payments, notifications, sessions, events)


def get_rewards_service(
    db: AsyncSession = Depends(get_db),
    credits: CreditService = Depends(get_credit_service),
    events: EventService = Depends(get_event_service),
) -> RewardsService:
    return RewardsService(db, credits, events)
