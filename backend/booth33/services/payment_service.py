"""
Payment service: saved cards, charges and refunds.

Charges go through a `PaymentProcessor` chosen by the strategy factory.
Every attempt, approved or declined, is recorded as a payment_transactions
row. A declined charge raises PaymentFailedError *after* the failed row is
flushed, so callers that want the record kept must commit before
propagating the error (the bookings route does).
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from booth33.core.exceptions import (
    DomainError, PaymentFailedError, PaymentMethodRequired, RefundExceedsAvailableError,
)
from booth33.core.logging import get_logger
from booth33.core.metrics import record_payment, refunds_processed
from booth33.domain.statuses import PaymentStatus
from booth33.domain.validation import card_brand
from booth33.models.payment import PaymentMethod, PaymentTransaction
from booth33.schemas.payment import PaymentMethodCreate
from booth33.services.interfaces import PaymentProcessor

logger = get_logger(__name__)


class PaymentService:
    def __init__(self, db: AsyncSession, processor: PaymentProcessor, notifications=None):
        self.db = db
        self.processor = processor
        self.notifications = notifications

    # Saved cards

    async def list_payment_methods(self, user_id: int) -> list[PaymentMethod]:
        result = await self.db.execute(
            select(PaymentMethod)
            .where(PaymentMethod.user_id == user_id)
            .order_by(PaymentMethod.is_default.desc(), PaymentMethod.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_payment_method(self, user_id: int, method_id: int) -> PaymentMethod:
        result = await self.db.execute(
            select(PaymentMethod).where(
                PaymentMethod.id == method_id,
                PaymentMethod.user_id == user_id,
            )
        )
        method = result.scalar_one_or_none()
        if not method:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Payment method not found",
            )
        return method

    async def get_default_payment_method(self, user_id: int) -> Optional[PaymentMethod]:
        result = await self.db.execute(
            select(PaymentMethod).where(
                PaymentMethod.user_id == user_id,
                PaymentMethod.is_default.is_(True),
            )
        )
        return result.scalars().first()

    async def add_payment_method(self, user_id: int, data: PaymentMethodCreate) -> PaymentMethod:
        """Store a card's brand and last four digits. The first card becomes the default."""
        existing = await self.list_payment_methods(user_id)
        method = PaymentMethod(
            user_id=user_id,
            brand=card_brand(data.card_number),
            last4=data.card_number[-4:],
            expiry_month=data.expiry_month,
            expiry_year=data.expiry_year,
            holder_name=data.holder_name or "Card Holder",
            is_default=not existing,
        )
        self.db.add(method)
        await self.db.flush()
        await self.db.refresh(method)

        logger.info("payment_method_added", user_id=user_id, method_id=method.id, brand=method.brand)
        return method

    async def set_default_payment_method(self, user_id: int, method_id: int) -> PaymentMethod:
        method = await self.get_payment_method(user_id, method_id)
        await self.db.execute(
            update(PaymentMethod)
            .where(PaymentMethod.user_id == user_id, PaymentMethod.id != method_id)
            .values(is_default=False)
            .execution_options(synchronize_session=False)
        )
        method.is_default = True
        await self.db.flush()
        await self.db.refresh(method)
        return method

    async def remove_payment_method(self, user_id: int, method_id: int) -> None:
        method = await self.get_payment_method(user_id, method_id)
        if method.is_default and len(await self.list_payment_methods(user_id)) > 1:
            raise DomainError("Set another card as default before removing this one")

        # Keep charge history, drop the link to the card
        await self.db.execute(
            update(PaymentTransaction)
            .where(PaymentTransaction.payment_method_id == method_id)
            .values(payment_method_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(method)
        await self.db.flush()
        logger.info("payment_method_removed", user_id=user_id, method_id=method_id)

    # Charges

    async def process_payment(
        self,
        user_id: int,
        amount: Decimal,
        description: str,
        booking_id: Optional[int] = None,
        payment_method_id: Optional[int] = None,
    ) -> PaymentTransaction:
        """
        Charge a card and record the attempt.

        Uses `payment_method_id` when given, otherwise the default card.
        Raises PaymentMethodRequired when there is no card to charge and
        PaymentFailedError when the processor declines.
        """
        amount = Decimal(amount)
        if payment_method_id is not None:
            method = await self.get_payment_method(user_id, payment_method_id)
        else:
            method = await self.get_default_payment_method(user_id)
        if method is None:
            raise PaymentMethodRequired("No payment method available. Please add a card first.")

        result = await self.processor.charge(amount, f"{method.brand} *{method.last4}", description)

        txn = PaymentTransaction(
            user_id=user_id,
            booking_id=booking_id,
            payment_method_id=method.id,
            amount=amount,
            status=(PaymentStatus.COMPLETED if result.approved else PaymentStatus.FAILED).value,
            description=description,
            receipt_ref=result.reference,
            failure_reason=result.failure_reason,
            refunded_amount=Decimal("0"),
        )
        self.db.add(txn)
        await self.db.flush()
        await self.db.refresh(txn)
        record_payment(result.approved)

        if not result.approved:
            logger.warning("payment_failed", user_id=user_id, transaction_id=txn.id,
                           amount=str(amount), reason=result.failure_reason)
            if self.notifications is not None:
                await self.notifications.notify_payment_failed(user_id, amount, description, txn.id)
            raise PaymentFailedError("Payment failed. Please try another card.", txn.id)

        logger.info("payment_completed", user_id=user_id, transaction_id=txn.id, amount=str(amount))
        if self.notifications is not None:
            await self.notifications.notify_payment_success(user_id, amount, description, txn.id)
        return txn

    async def attach_to_booking(self, txn: PaymentTransaction, booking_id: int) -> PaymentTransaction:
        txn.booking_id = booking_id
        await self.db.flush()
        await self.db.refresh(txn)
        return txn

    async def reverse_charge(self, txn: PaymentTransaction) -> None:
        """
        Hand a charge back to the processor when the work it paid for is being
        rolled back. The transaction row goes with the rollback, so only the
        processor and the log see the reversal.
        """
        await self.processor.refund(txn.receipt_ref, Decimal(txn.amount))
        refunds_processed.labels(kind="reversal").inc()
        logger.warning("payment_reversed", user_id=txn.user_id, reference=txn.receipt_ref,
                       amount=str(txn.amount))

    async def get_transaction(self, transaction_id: int, user_id: Optional[int] = None) -> PaymentTransaction:
        query = select(PaymentTransaction).where(PaymentTransaction.id == transaction_id)
        if user_id is not None:
            query = query.where(PaymentTransaction.user_id == user_id)
        txn = (await self.db.execute(query)).scalar_one_or_none()
        if not txn:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Transaction not found",
            )
        return txn

    async def process_refund(
        self,
        transaction_id: int,
        amount: Optional[Decimal] = None,
    ) -> tuple[PaymentTransaction, Decimal]:
        """
        Refund all or part of a completed charge.

        Refunds accumulate; the charge flips to 'refunded' only once the
        cumulative refund equals the original amount.
        """
        txn = await self.get_transaction(transaction_id)
        if txn.status != PaymentStatus.COMPLETED.value:
            raise DomainError("Can only refund completed transactions")

        refundable = Decimal(txn.amount) - Decimal(txn.refunded_amount)
        to_refund = Decimal(amount) if amount is not None else refundable
        if to_refund <= 0:
            raise DomainError("Refund amount must be positive")
        if to_refund > refundable:
            raise RefundExceedsAvailableError(to_refund, refundable)

        await self.processor.refund(txn.receipt_ref, to_refund)

        txn.refunded_amount = Decimal(txn.refunded_amount) + to_refund
        txn.refund_date = datetime.now(timezone.utc)
        if txn.refunded_amount == Decimal(txn.amount):
            txn.status = PaymentStatus.REFUNDED.value
        await self.db.flush()
        await self.db.refresh(txn)

        kind = "full" if to_refund == Decimal(txn.amount) else "partial"
        refunds_processed.labels(kind=kind).inc()
        logger.info("refund_processed", transaction_id=txn.id, amount=str(to_refund),
                    total_refunded=str(txn.refunded_amount), status=txn.status)
        if self.notifications is not None:
            await self.notifications.notify_refund(txn.user_id, to_refund, txn.id)
        return txn, to_refund

    async def get_payment_history(self, user_id: int) -> list[PaymentTransaction]:
        result = await self.db.execute(
            select(PaymentTransaction)
            .where(PaymentTransaction.user_id == user_id)
            .order_by(PaymentTransaction.created_at.desc(), PaymentTransaction.id.desc())
        )
        return list(result.scalars().all())

    async def get_booking_transactions(self, booking_id: int) -> list[PaymentTransaction]:
        result = await self.db.execute(
            select(PaymentTransaction)
            .where(PaymentTransaction.booking_id == booking_id)
            .order_by(PaymentTransaction.created_at.asc(), PaymentTransaction.id.asc())
        )
        return list(result.scalars().all())

    async def get_revenue_stats(self, now: Optional[datetime] = None) -> dict:
        """Totals over completed and refunded charges, plus the current calendar month."""
        now = now or datetime.now(timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        settled = PaymentTransaction.status.in_(
            [PaymentStatus.COMPLETED.value, PaymentStatus.REFUNDED.value]
        )

        totals = (await self.db.execute(
            select(
                func.coalesce(func.sum(PaymentTransaction.amount), 0),
                func.coalesce(func.sum(PaymentTransaction.refunded_amount), 0),
                func.count(PaymentTransaction.id),
            ).where(settled)
        )).one()
        monthly = (await self.db.execute(
            select(
                func.coalesce(func.sum(PaymentTransaction.amount), 0),
                func.count(PaymentTransaction.id),
            ).where(settled, PaymentTransaction.created_at >= month_start)
        )).one()

        total_revenue, total_refunded = Decimal(totals[0]), Decimal(totals[1])
        return {
            "total_revenue": total_revenue,
            "total_refunded": total_refunded,
            "net_revenue": total_revenue - total_refunded,
            "monthly_revenue": Decimal(monthly[0]),
            "total_transactions": totals[2],
            "monthly_transactions": monthly[1],
        }
