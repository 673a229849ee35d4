"""
Payment processor factory.
Configures which card gateway the payment service talks to.
"""

from typing import Optional

from booth33.services.interfaces import (
    ApprovingPaymentProcessor, MockPaymentProcessor, PaymentProcessor,
)
from booth33.core.config import get_settings

settings = get_settings()


def build_payment_processor() -> PaymentProcessor:
    """
    Build the configured processor.

    Selection via PAYMENT_PROCESSOR:
    - mock: simulated delay and decline rate (default)
    - approve: instant approval, no declines
    """
    if settings.PAYMENT_PROCESSOR == "approve":
        return ApprovingPaymentProcessor()
    if settings.PAYMENT_PROCESSOR == "mock":
        return MockPaymentProcessor(
            delay_seconds=settings.PAYMENT_MOCK_DELAY_SECONDS,
            failure_rate=settings.PAYMENT_MOCK_FAILURE_RATE,
        )
    raise ValueError(f"Unknown PAYMENT_PROCESSOR: {settings.PAYMENT_PROCESSOR}")


# Singleton instance
_processor: Optional[PaymentProcessor] = None


def get_payment_processor() -> PaymentProcessor:
    """Get payment processor singleton."""
    global _processor
    if _processor is None:
        _processor = build_payment_processor()
    return _processor
