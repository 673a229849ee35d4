"""
Closed vocabularies for every status / kind column, plus the booking
state machine.
"""

from enum import Enum

from booth33.core.exceptions import InvalidStatusTransition


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionType(str, Enum):
    MUSIC = "music"
    PODCAST = "podcast"


class EventType(str, Enum):
    OPEN_MIC = "open-mic"
    LISTENING_PARTY = "listening-party"
    WORKSHOP = "workshop"
    PRIVATE = "private"


class CreditTransactionType(str, Enum):
    GRANTED = "granted"
    USED = "used"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class StudioSessionStatus(str, Enum):
    DRAFT = "draft"
    READY_TO_DELIVER = "ready_to_deliver"
    DELIVERED = "delivered"


class ReferralStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class NotificationType(str, Enum):
    BOOKING_STATUS = "booking_status"
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_FAILED = "payment_failed"
    REFUND = "refund"
    CREDITS_GRANTED = "credits_granted"
    SESSION_DELIVERED = "session_delivered"
    REWARD = "reward"
    SYSTEM = "system"


# Statuses whose bookings hold their slots
BLOCKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def can_transition(current, target) -> bool:
    return BookingStatus(target) in BOOKING_TRANSITIONS[BookingStatus(current)]


def transition(current, target) -> BookingStatus:
    """Validate a booking status change and return the new status."""
    current, target = BookingStatus(current), BookingStatus(target)
    if target not in BOOKING_TRANSITIONS[current]:
        raise InvalidStatusTransition(current.value, target.value)
    return target


def is_terminal(status) -> bool:
    return not BOOKING_TRANSITIONS[BookingStatus(status)]
