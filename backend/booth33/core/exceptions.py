"""
Domain errors.

Services raise these for business-rule failures; `main.py` registers a single
handler that renders them as JSON with the status code each class carries.
Lookup and permission failures stay as plain `HTTPException`s.
"""

from decimal import Decimal
from typing import Optional

from fastapi import status


class DomainError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InsufficientCreditsError(DomainError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    code = "insufficient_credits"

    def __init__(self, requested: Decimal, balance: Decimal):
        super().__init__(f"Insufficient credits. Requested: {requested}, Available: {balance}")
        self.requested = requested
        self.balance = balance


class PaymentFailedError(DomainError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    code = "payment_failed"

    def __init__(self, message: str, transaction_id: Optional[int] = None):
        super().__init__(message)
        self.transaction_id = transaction_id


class PaymentMethodRequired(DomainError):
    code = "payment_method_required"


class RefundExceedsAvailableError(DomainError):
    code = "refund_exceeds_available"

    def __init__(self, requested: Decimal, refundable: Decimal):
        super().__init__(
            f"Refund amount exceeds available amount. Requested: {requested}, Refundable: {refundable}"
        )
        self.requested = requested
        self.refundable = refundable


class SlotUnavailableError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "slot_unavailable"


class InvalidStatusTransition(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_status_transition"

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move from '{current}' to '{target}'")
        self.current = current
        self.target = target


class EventFullError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "event_full"


class SessionAlreadyExistsError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "session_exists"


class RewardUnavailableError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "reward_unavailable"
