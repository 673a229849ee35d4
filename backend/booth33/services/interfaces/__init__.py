"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .payment_processor import ChargeResult, PaymentProcessor
from .mock_processor import ApprovingPaymentProcessor, MockPaymentProcessor

__all__ = ['ChargeResult', 'PaymentProcessor', 'ApprovingPaymentProcessor', 'MockPaymentProcessor']
