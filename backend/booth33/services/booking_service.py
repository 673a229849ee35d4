"""
Booking service: checkout, the status lifecycle and availability.

CHECKOUT
========

  1. Conflict check against the day's blocking bookings and events
  2. Price from the duration table
  3. Split the price between the credit balance and the card
  4. Charge the card for the remainder (if any), BEFORE anything is written,
     so a decline leaves no booking and no spent credits behind
  5. Insert the booking as 'pending'
  6. Spend the credits (optimistic lock on the balance) tagged with the booking
  7. Link the card charge to the booking

Steps 5-7 run in the request's transaction: if step 6 loses a race and
raises InsufficientCreditsError, the booking insert and the charge record
roll back with it. The processor charge itself can't be rolled back, so any
failure after step 4 refunds it through the processor before re-raising.

CONCURRENT SLOT REQUESTS
========================

Two users requesting the same slot at the same moment can both pass step 1.
The conflict check is a read, not a lock; the admin confirmation step is
where a double request gets caught: confirm re-runs the conflict check
against confirmed bookings and events before moving to 'confirmed'.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from booth33.core.exceptions import DomainError, SessionAlreadyExistsError, SlotUnavailableError
from booth33.core.logging import get_logger
from booth33.core.metrics import booking_latency, booking_transitions, record_booking_attempt
from booth33.domain.conflicts import SlotAvailability, available_slots, is_time_slot_booked
from booth33.domain.pricing import CreditUsage, duration_label, price_for_duration
from booth33.domain.statuses import BLOCKING_STATUSES, BookingStatus, transition
from booth33.models.booking import Booking
from booth33.models.payment import PaymentTransaction
from booth33.models.studio_session import StudioSession
from booth33.models.user import User
from booth33.schemas.booking import BookingCreate

logger = get_logger(__name__)


def _reject_past_date(day: date) -> None:
    if day < date.today():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Booking date cannot be in the past",
        )


@dataclass
class Checkout:
    booking: Booking
    usage: CreditUsage
    charge: Optional[PaymentTransaction] = None

    @property
    def amount_charged(self) -> Decimal:
        return Decimal(self.charge.amount) if self.charge is not None else Decimal("0")


class BookingService:
    def __init__(self, db: AsyncSession, credits, payments, notifications, sessions, events):
        self.db = db
        self.credits = credits
        self.payments = payments
        self.notifications = notifications
        self.sessions = sessions
        self.events = events

    # Availability

    async def _blocking_bookings(self, day: date, statuses=BLOCKING_STATUSES) -> list[Booking]:
        result = await self.db.execute(
            select(Booking).where(
                Booking.date == day,
                Booking.status.in_([s.value for s in statuses]),
            )
        )
        return list(result.scalars().all())

    async def is_time_slot_booked(
        self,
        day: date,
        time_slot: str,
        duration: int,
        exclude_booking_id: Optional[int] = None,
        statuses=BLOCKING_STATUSES,
    ) -> bool:
        return is_time_slot_booked(
            day,
            time_slot,
            duration,
            await self._blocking_bookings(day, statuses),
            await self.events.events_on(day),
            exclude_booking_id=exclude_booking_id,
        )

    async def get_availability(self, day: date, duration: int) -> list[SlotAvailability]:
        return available_slots(
            day,
            duration,
            await self._blocking_bookings(day),
            await self.events.events_on(day),
        )

    async def quote(self, user_id: int, duration: int) -> tuple[Decimal, CreditUsage]:
        price = price_for_duration(duration)
        return price, await self.credits.calculate_usage(user_id, price)

    # Checkout

    async def create_booking(self, user_id: int, data: BookingCreate) -> Checkout:
        with booking_latency.time():
            try:
                checkout = await self._checkout(user_id, data)
            except DomainError as exc:
                record_booking_attempt(exc.code)
                raise
        record_booking_attempt("success")
        return checkout

    async def _checkout(self, user_id: int, data: BookingCreate) -> Checkout:
        _reject_past_date(data.date)
        if await self.is_time_slot_booked(data.date, data.time_slot, data.duration):
            logger.warning("booking_failed_slot_unavailable", user_id=user_id,
                           date=str(data.date), time=data.time_slot, duration=data.duration)
            raise SlotUnavailableError("This time slot is no longer available")

        price = price_for_duration(data.duration)
        usage = await self.credits.calculate_usage(user_id, price)
        description = f"{data.session_type.value.title()} Session - {duration_label(data.duration)}"

        charge = None
        if usage.remaining_price > 0:
            charge = await self.payments.process_payment(
                user_id,
                usage.remaining_price,
                description,
                payment_method_id=data.payment_method_id,
            )

        # Nothing below survives a rollback, so the card charge is handed back
        # to the processor whenever a later step fails.
        try:
            booking = await self._record_booking(user_id, data, price, usage, description, charge)
        except Exception:
            if charge is not None:
                await self.payments.reverse_charge(charge)
            raise
        logger.info(
            "booking_created",
            booking_id=booking.id,
            user_id=user_id,
            date=str(booking.date),
            time=booking.time_slot,
            duration=booking.duration,
            price=str(price),
            credits_applied=str(usage.credits_to_use),
            charged=str(usage.remaining_price),
        )
        return Checkout(booking=booking, usage=usage, charge=charge)

    async def _record_booking(
        self,
        user_id: int,
        data: BookingCreate,
        price: Decimal,
        usage: CreditUsage,
        description: str,
        charge: Optional[PaymentTransaction],
    ) -> Booking:
        booking = Booking(
            user_id=user_id,
            session_type=data.session_type.value,
            date=data.date,
            time_slot=data.time_slot,
            duration=data.duration,
            price=price,
            status=BookingStatus.PENDING.value,
            notes=data.notes,
        )
        self.db.add(booking)
        await self.db.flush()
        await self.db.refresh(booking)

        if usage.credits_to_use > 0:
            await self.credits.use_credits(
                user_id,
                usage.credits_to_use,
                booking_id=booking.id,
                description=f"Studio booking - {description}",
            )
        if charge is not None:
            await self.payments.attach_to_booking(charge, booking.id)

        await self.notifications.notify_booking_status(booking)
        return booking

    # Lookups

    async def get_booking(self, booking_id: int, user_id: Optional[int] = None) -> Booking:
        query = select(Booking).where(Booking.id == booking_id)
        if user_id is not None:
            query = query.where(Booking.user_id == user_id)
        booking = (await self.db.execute(query)).scalar_one_or_none()
        if not booking:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Booking not found",
            )
        return booking

    async def get_user_bookings(
        self,
        user_id: int,
        status_filter: Optional[BookingStatus] = None,
    ) -> list[Booking]:
        query = select(Booking).where(Booking.user_id == user_id)
        if status_filter is not None:
            query = query.where(Booking.status == BookingStatus(status_filter).value)
        result = await self.db.execute(query.order_by(Booking.date.asc(), Booking.id.asc()))
        return list(result.scalars().all())

    async def get_upcoming_bookings(self, user_id: int, today: Optional[date] = None) -> list[Booking]:
        result = await self.db.execute(
            select(Booking)
            .where(
                Booking.user_id == user_id,
                Booking.date >= (today or date.today()),
                Booking.status.in_([s.value for s in BLOCKING_STATUSES]),
            )
            .order_by(Booking.date.asc(), Booking.id.asc())
        )
        return list(result.scalars().all())

    async def get_past_bookings(self, user_id: int, today: Optional[date] = None) -> list[Booking]:
        today = today or date.today()
        result = await self.db.execute(
            select(Booking)
            .where(
                Booking.user_id == user_id,
                (Booking.date < today) | Booking.status.in_(
                    [BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value]
                ),
            )
            .order_by(Booking.date.desc(), Booking.id.desc())
        )
        return list(result.scalars().all())

    # User-side changes

    async def cancel_booking(self, booking_id: int, user_id: int, reason: Optional[str] = None) -> Booking:
        """Cancel the user's own booking. Money is returned by an admin refund, not here."""
        booking = await self.get_booking(booking_id, user_id)
        booking.status = transition(booking.status, BookingStatus.CANCELLED).value
        booking.cancellation_reason = reason
        await self.db.flush()
        await self.db.refresh(booking)

        booking_transitions.labels(target=BookingStatus.CANCELLED.value).inc()
        logger.info("booking_cancelled", booking_id=booking.id, user_id=user_id, by="user")
        return booking

    async def reschedule_booking(
        self,
        booking_id: int,
        user_id: int,
        new_date: date,
        new_time_slot: str,
    ) -> Booking:
        booking = await self.get_booking(booking_id, user_id)
        if BookingStatus(booking.status) not in BLOCKING_STATUSES:
            raise DomainError("Only pending or confirmed bookings can be rescheduled")
        _reject_past_date(new_date)

        if await self.is_time_slot_booked(new_date, new_time_slot, booking.duration,
                                          exclude_booking_id=booking.id):
            raise SlotUnavailableError("The new time slot is not available")

        old = (str(booking.date), booking.time_slot)
        booking.date = new_date
        booking.time_slot = new_time_slot
        await self.db.flush()
        await self.db.refresh(booking)

        logger.info("booking_rescheduled", booking_id=booking.id, user_id=user_id,
                    old_date=old[0], old_time=old[1], date=str(new_date), time=new_time_slot)
        return booking

    # Admin workflow

    async def _move(self, booking: Booking, target: BookingStatus, reason: Optional[str] = None) -> Booking:
        booking.status = transition(booking.status, target).value
        if reason is not None:
            booking.cancellation_reason = reason
        await self.db.flush()
        await self.db.refresh(booking)

        booking_transitions.labels(target=target.value).inc()
        logger.info("booking_status_changed", booking_id=booking.id, status=booking.status)
        await self.notifications.notify_booking_status(booking, reason)
        return booking

    async def confirm_booking(self, booking_id: int) -> Booking:
        booking = await self.get_booking(booking_id)
        if BookingStatus(booking.status) == BookingStatus.PENDING and await self.is_time_slot_booked(
            booking.date, booking.time_slot, booking.duration,
            exclude_booking_id=booking.id, statuses={BookingStatus.CONFIRMED},
        ):
            raise SlotUnavailableError("Another booking or event already holds this slot")
        return await self._move(booking, BookingStatus.CONFIRMED)

    async def reject_booking(self, booking_id: int, reason: Optional[str] = None) -> Booking:
        booking = await self.get_booking(booking_id)
        return await self._move(booking, BookingStatus.CANCELLED, reason)

    async def complete_booking(self, booking_id: int) -> tuple[Booking, StudioSession]:
        """Mark a confirmed booking complete and open its studio session."""
        booking = await self.get_booking(booking_id)
        if await self.sessions.has_session_for_booking(booking.id):
            raise SessionAlreadyExistsError("A session already exists for this booking")

        booking = await self._move(booking, BookingStatus.COMPLETED)
        session = await self.sessions.create_from_booking(booking)
        return booking, session

    async def list_all_bookings(
        self,
        status_filter: Optional[BookingStatus] = None,
        session_type: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        search: Optional[str] = None,
    ) -> list[tuple[Booking, Optional[str], Optional[str]]]:
        """Every booking with its user's email and name, newest first."""
        query = select(Booking, User.email, User.full_name).outerjoin(User, User.id == Booking.user_id)
        if status_filter is not None:
            query = query.where(Booking.status == BookingStatus(status_filter).value)
        if session_type is not None:
            query = query.where(Booking.session_type == session_type)
        if date_from is not None:
            query = query.where(Booking.date >= date_from)
        if date_to is not None:
            query = query.where(Booking.date <= date_to)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                func.lower(User.email).like(pattern) | func.lower(User.full_name).like(pattern)
            )
        result = await self.db.execute(query.order_by(Booking.created_at.desc(), Booking.id.desc()))
        return [(row[0], row[1], row[2]) for row in result.all()]

    async def get_stats(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> dict:
        """Booking counts per status and booked revenue, optionally over a date range."""
        window = []
        if date_from is not None:
            window.append(Booking.date >= date_from)
        if date_to is not None:
            window.append(Booking.date <= date_to)

        result = await self.db.execute(
            select(Booking.status, func.count(Booking.id)).where(*window).group_by(Booking.status)
        )
        by_status = dict(result.all())
        revenue = (await self.db.execute(
            select(func.coalesce(func.sum(Booking.price), 0)).where(
                Booking.status.in_([BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value]),
                *window,
            )
        )).scalar()
        return {
            "total": sum(by_status.values()),
            "pending": by_status.get(BookingStatus.PENDING.value, 0),
            "confirmed": by_status.get(BookingStatus.CONFIRMED.value, 0),
            "completed": by_status.get(BookingStatus.COMPLETED.value, 0),
            "cancelled": by_status.get(BookingStatus.CANCELLED.value, 0),
            "total_revenue": Decimal(revenue),
        }
