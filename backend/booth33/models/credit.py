"""
Studio credits: one account row per user plus an append-only ledger.

Key design decisions:
- `credit_accounts.balance` is the authoritative balance; the ledger is the
  audit trail. Both are written in the same transaction, so
  balance == sum(granted) - sum(used) at every commit
- `version` column enables optimistic locking on the balance
- DB CHECK keeps the balance from ever going negative
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String

from booth33.db.base import Base, TimestampMixin


class CreditAccount(Base, TimestampMixin):
    __tablename__ = "credit_accounts"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    balance = Column(Numeric(10, 2), nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("balance >= 0", name="check_credit_balance_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<CreditAccount(user={self.user_id}, balance={self.balance})>"


class CreditTransaction(Base, TimestampMixin):
    __tablename__ = "credit_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(10), nullable=False)  # granted, used
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(String(255), nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    granted_by = Column(String(100), nullable=True)

    __table_args__ = (
        CheckConstraint("type IN ('granted', 'used')", name="check_credit_transaction_type"),
        CheckConstraint("amount > 0", name="check_credit_amount_positive"),
    )

    def __repr__(self) -> str:
        return f"<CreditTransaction(id={self.id}, user={self.user_id}, {self.type} {self.amount})>"
