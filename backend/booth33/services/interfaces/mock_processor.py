"""
Simulated card gateways.
"""

import asyncio
import random
import uuid
from decimal import Decimal
from typing import Optional

from booth33.services.interfaces.payment_processor import ChargeResult, PaymentProcessor
from booth33.core.logging import get_logger

logger = get_logger(__name__)


def _receipt_ref() -> str:
    return f"rcpt_{uuid.uuid4().hex[:16]}"


class MockPaymentProcessor(PaymentProcessor):
    """
    Waits like a real gateway and declines a fraction of charges.

    Use when:
    - Demoing the checkout flow end to end
    - Exercising decline handling by hand
    """

    def __init__(
        self,
        delay_seconds: float = 1.5,
        failure_rate: float = 0.1,
        rng: Optional[random.Random] = None,
    ):
        self.delay_seconds = delay_seconds
        self.failure_rate = failure_rate
        self.rng = rng or random.Random()

    async def charge(self, amount: Decimal, card_label: str, description: str) -> ChargeResult:
        await asyncio.sleep(self.delay_seconds)
        if self.rng.random() < self.failure_rate:
            logger.info("mock_charge_declined", amount=str(amount), card=card_label)
            return ChargeResult(approved=False, failure_reason="Card declined")
        return ChargeResult(approved=True, reference=_receipt_ref())

    async def refund(self, reference: Optional[str], amount: Decimal) -> None:
        # Refunds come back faster than charges
        await asyncio.sleep(self.delay_seconds * 2 / 3)
        logger.info("mock_refund_sent", reference=reference, amount=str(amount))


class ApprovingPaymentProcessor(PaymentProcessor):
    """Approves every charge with no delay."""

    async def charge(self, amount: Decimal, card_label: str, description: str) -> ChargeResult:
        return ChargeResult(approved=True, reference=_receipt_ref())

    async def refund(self, reference: Optional[str], amount: Decimal) -> None:
        pass
