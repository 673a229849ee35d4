"""
Payment processor interface.
Allows swapping the card gateway without changing payment business logic.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class ChargeResult:
    approved: bool
    reference: Optional[str] = None
    failure_reason: Optional[str] = None


class PaymentProcessor(ABC):
    """
    Interface for card gateways.

    Implementations:
    - MockPaymentProcessor: simulated latency and a configurable decline rate
    - ApprovingPaymentProcessor: approves everything instantly (local dev, tests)
    """

    @abstractmethod
    async def charge(self, amount: Decimal, card_label: str, description: str) -> ChargeResult:
        """
        Charge a saved card.

        Args:
            amount: Dollar amount, always positive
            card_label: Display form of the card, e.g. "Visa *4242"
            description: Statement line

        Returns:
            ChargeResult with `approved` False on a decline
        """
        pass

    @abstractmethod
    async def refund(self, reference: Optional[str], amount: Decimal) -> None:
        """
        Return money for an earlier approved charge.

        Args:
            reference: Gateway reference of the original charge
            amount: Dollar amount to return
        """
        pass
