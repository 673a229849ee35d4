"""
Slot conflict checking over bookings and events.

Everything here is a pure function of the collections passed in. Services load
the rows for the requested day and hand them over; ORM instances and plain
dataclasses both work as long as they expose `date`, `time_slot` and
`duration` (and `status` / `id` for bookings).

Events always win: a slot covered by an event is never bookable, whatever the
state of the bookings on that day.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional, Protocol

from booth33.domain.statuses import BLOCKING_STATUSES, BookingStatus
from booth33.domain.timegrid import SLOT_LABELS, occupied_labels


class Slotted(Protocol):
    date: Any
    time_slot: str
    duration: int


@dataclass(frozen=True)
class SlotAvailability:
    time: str
    available: bool
    event: Optional[Any] = None

    @property
    def is_event(self) -> bool:
        return self.event is not None


def _calendar_day(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def same_day(a, b) -> bool:
    """Calendar-date equality; time of day is ignored."""
    return _calendar_day(a) == _calendar_day(b)


def get_event_for_time_slot(day, time_slot: str, events: Iterable[Slotted]):
    """Return the first event on `day` whose run of slots covers `time_slot`."""
    for event in events:
        if not same_day(event.date, day):
            continue
        if time_slot in occupied_labels(event.time_slot, event.duration):
            return event
    return None


def _event_conflict(day, requested: frozenset[str], events: Iterable[Slotted]) -> bool:
    for event in events:
        if not same_day(event.date, day):
            continue
        if requested & occupied_labels(event.time_slot, event.duration):
            return True
    return False


def _booking_conflict(
    day,
    requested: frozenset[str],
    bookings: Iterable[Slotted],
    exclude_booking_id=None,
) -> bool:
    for booking in bookings:
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        if BookingStatus(booking.status) not in BLOCKING_STATUSES:
            continue
        if not same_day(booking.date, day):
            continue
        if requested & occupied_labels(booking.time_slot, booking.duration):
            return True
    return False


def is_time_slot_booked(
    day,
    time_slot: str,
    duration: int,
    bookings: Iterable[Slotted],
    events: Iterable[Slotted] = (),
    exclude_booking_id=None,
) -> bool:
    """
    True if a `duration`-hour reservation starting at `time_slot` on `day`
    would overlap an event or a pending/confirmed booking.

    An unknown `time_slot` occupies nothing and is therefore reported as free.
    Callers that accept user input validate labels before getting here.
    """
    requested = occupied_labels(time_slot, duration)
    if not requested:
        return False

    if _event_conflict(day, requested, events):
        return True

    return _booking_conflict(day, requested, bookings, exclude_booking_id)


def available_slots(
    day,
    duration: int,
    bookings: Iterable[Slotted],
    events: Iterable[Slotted] = (),
) -> list[SlotAvailability]:
    """Availability grid for one day, one entry per slot label."""
    bookings = list(bookings)
    events = list(events)
    return [
        SlotAvailability(
            time=label,
            available=not is_time_slot_booked(day, label, duration, bookings, events),
            event=get_event_for_time_slot(day, label, events),
        )
        for label in SLOT_LABELS
    ]
