"""
Credit service: studio credit balances and their ledger.

CONCURRENCY STRATEGY: Optimistic Locking with Retry
====================================================

Problem:
  Two bookings by the same user run at once. Both read balance=50, both
  spend 50, both succeed. Result: credits spent twice.

Solution:
  The balance lives on `credit_accounts` with a `version` column.

  1. Read the account's balance and version
  2. UPDATE credit_accounts SET balance = balance + :delta, version = version + 1
     WHERE user_id = :user_id AND version = :current_version
  3. If rows_affected == 0 the row moved underneath us -> re-read and retry

  The balance check happens against the freshly read row on every attempt,
  and the DB CHECK (balance >= 0) is the final safety net.

Ledger:
  Every balance change writes one `credit_transactions` row in the same
  transaction, so balance == sum(granted) - sum(used) holds at every commit.
  `verify_ledger` recomputes this for audits.
"""

from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from booth33.core.exceptions import InsufficientCreditsError
from booth33.core.logging import get_logger
from booth33.core.metrics import db_retries, record_credit_movement
from booth33.domain.pricing import CreditUsage, calculate_credit_usage
from booth33.domain.statuses import CreditTransactionType
from booth33.models.credit import CreditAccount, CreditTransaction

logger = get_logger(__name__)

MAX_RETRY_ATTEMPTS = 3
ZERO = Decimal("0")


class CreditService:
    def __init__(self, db: AsyncSession, notifications=None):
        self.db = db
        self.notifications = notifications

    async def _get_account(self, user_id: int) -> CreditAccount:
        """Fetch the user's account, opening an empty one on first use."""
        result = await self.db.execute(
            select(CreditAccount)
            .where(CreditAccount.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        account = result.scalar_one_or_none()
        if account is None:
            account = CreditAccount(user_id=user_id, balance=ZERO, version=1)
            self.db.add(account)
            await self.db.flush()
            await self.db.refresh(account)
        return account

    async def get_balance(self, user_id: int) -> Decimal:
        result = await self.db.execute(
            select(CreditAccount.balance).where(CreditAccount.user_id == user_id)
        )
        balance = result.scalar_one_or_none()
        return Decimal(balance) if balance is not None else ZERO

    async def _apply(self, user_id: int, delta: Decimal) -> Decimal:
        """Move the balance by `delta` under the version lock. Returns the new balance."""
        for attempt in range(1, MAX_RETRY_ATTEMPTS + 1):
            account = await self._get_account(user_id)

            if delta < 0 and account.balance < -delta:
                logger.warning(
                    "credits_insufficient",
                    user_id=user_id,
                    requested=str(-delta),
                    balance=str(account.balance),
                )
                raise InsufficientCreditsError(-delta, Decimal(account.balance))

            current_version = account.version
            update_result = await self.db.execute(
                update(CreditAccount)
                .where(
                    CreditAccount.user_id == user_id,
                    CreditAccount.version == current_version,
                )
                .values(
                    balance=CreditAccount.balance + delta,
                    version=CreditAccount.version + 1,
                )
                .execution_options(synchronize_session=False)
            )

            if update_result.rowcount == 0:
                logger.info(
                    "credit_update_retry",
                    user_id=user_id,
                    attempt=attempt,
                    reason="version_conflict",
                )
                db_retries.labels(entity="credit_account").inc()
                continue

            await self.db.refresh(account)
            return Decimal(account.balance)

        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Credit balance changed while updating. Please try again.",
        )

    async def grant_credits(
        self,
        user_id: int,
        amount: Decimal,
        description: str,
        granted_by: str = "Studio Admin",
    ) -> CreditTransaction:
        amount = Decimal(amount)
        if amount <= 0:
            raise ValueError("Credit grants must be positive")

        balance = await self._apply(user_id, amount)
        txn = CreditTransaction(
            user_id=user_id,
            type=CreditTransactionType.GRANTED.value,
            amount=amount,
            description=description,
            granted_by=granted_by,
        )
        self.db.add(txn)
        await self.db.flush()
        await self.db.refresh(txn)

        record_credit_movement("granted", amount)
        logger.info("credits_granted", user_id=user_id, amount=str(amount), balance=str(balance),
                    granted_by=granted_by)
        if self.notifications is not None:
            await self.notifications.notify_credits_granted(user_id, amount, description)
        return txn

    async def use_credits(
        self,
        user_id: int,
        amount: Decimal,
        booking_id: Optional[int] = None,
        description: str = "Studio booking",
    ) -> CreditTransaction:
        """
        Spend credits. Raises InsufficientCreditsError (balance untouched)
        when the amount exceeds the balance.
        """
        amount = Decimal(amount)
        if amount <= 0:
            raise ValueError("Credit usage must be positive")

        balance = await self._apply(user_id, -amount)
        txn = CreditTransaction(
            user_id=user_id,
            type=CreditTransactionType.USED.value,
            amount=amount,
            description=description,
            booking_id=booking_id,
        )
        self.db.add(txn)
        await self.db.flush()
        await self.db.refresh(txn)

        record_credit_movement("used", amount)
        logger.info("credits_used", user_id=user_id, amount=str(amount), balance=str(balance),
                    booking_id=booking_id)
        return txn

    async def calculate_usage(self, user_id: int, price: Decimal) -> CreditUsage:
        return calculate_credit_usage(await self.get_balance(user_id), price)

    async def get_history(
        self,
        user_id: int,
        type: Optional[CreditTransactionType] = None,
    ) -> list[CreditTransaction]:
        """Ledger entries, newest first."""
        query = select(CreditTransaction).where(CreditTransaction.user_id == user_id)
        if type is not None:
            query = query.where(CreditTransaction.type == CreditTransactionType(type).value)
        result = await self.db.execute(
            query.order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
        )
        return list(result.scalars().all())

    async def get_totals(self, user_id: int) -> tuple[Decimal, Decimal]:
        """(total granted, total used) from the ledger."""
        result = await self.db.execute(
            select(CreditTransaction.type, func.coalesce(func.sum(CreditTransaction.amount), 0))
            .where(CreditTransaction.user_id == user_id)
            .group_by(CreditTransaction.type)
        )
        totals = {row[0]: Decimal(row[1]) for row in result.all()}
        return (
            totals.get(CreditTransactionType.GRANTED.value, ZERO),
            totals.get(CreditTransactionType.USED.value, ZERO),
        )

    async def verify_ledger(self, user_id: int) -> bool:
        granted, used = await self.get_totals(user_id)
        balance = await self.get_balance(user_id)
        consistent = balance == granted - used
        if not consistent:
            logger.error("credit_ledger_mismatch", user_id=user_id, balance=str(balance),
                         granted=str(granted), used=str(used))
        return consistent
