"""
Saved cards and card charges.

Key design decisions:
- Only brand and last four digits of a card are stored
- A charge never changes amount; refunds accumulate in `refunded_amount`
  and the status flips to 'refunded' only once everything is returned
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String,
)

from booth33.db.base import Base, TimestampMixin


class PaymentMethod(Base, TimestampMixin):
    __tablename__ = "payment_methods"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    brand = Column(String(20), nullable=False)
    last4 = Column(String(4), nullable=False)
    expiry_month = Column(Integer, nullable=False)
    expiry_year = Column(Integer, nullable=False)
    holder_name = Column(String(255), nullable=False, default="Card Holder")
    is_default = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint("expiry_month BETWEEN 1 AND 12", name="check_expiry_month_range"),
    )

    def __repr__(self) -> str:
        return f"<PaymentMethod(id={self.id}, user={self.user_id}, {self.brand} *{self.last4})>"


class PaymentTransaction(Base, TimestampMixin):
    __tablename__ = "payment_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True, index=True)
    payment_method_id = Column(Integer, ForeignKey("payment_methods.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    description = Column(String(255), nullable=False)
    receipt_ref = Column(String(64), nullable=True)
    failure_reason = Column(String(255), nullable=True)
    refunded_amount = Column(Numeric(10, 2), nullable=False, default=0)
    refund_date = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed', 'refunded')",
            name="check_payment_status",
        ),
        CheckConstraint("amount > 0", name="check_payment_amount_positive"),
        CheckConstraint("refunded_amount >= 0", name="check_refunded_non_negative"),
        CheckConstraint("refunded_amount <= amount", name="check_refunded_lte_amount"),
    )

    @property
    def refundable_amount(self):
        return self.amount - self.refunded_amount

    def __repr__(self) -> str:
        return f"<PaymentTransaction(id={self.id}, amount={self.amount}, status={self.status})>"
