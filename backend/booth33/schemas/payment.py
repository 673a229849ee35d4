"""
Pydantic schemas for saved cards, charges and refunds.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from booth33.domain.statuses import PaymentStatus
from booth33.domain.validation import CVV_PATTERN, clean_card_number, is_card_expired, is_valid_card_number


class PaymentMethodCreate(BaseModel):
    card_number: str
    expiry_month: int = Field(..., ge=1, le=12)
    expiry_year: int = Field(..., ge=2000, le=2100)
    cvv: str
    holder_name: Optional[str] = Field(None, max_length=255)

    @field_validator("card_number")
    @classmethod
    def valid_card_number(cls, value: str) -> str:
        if not is_valid_card_number(value):
            raise ValueError("Invalid card number")
        return clean_card_number(value)

    @field_validator("cvv")
    @classmethod
    def valid_cvv(cls, value: str) -> str:
        if not CVV_PATTERN.match(value):
            raise ValueError("CVV must be 3 or 4 digits")
        return value

    @model_validator(mode="after")
    def not_expired(self) -> "PaymentMethodCreate":
        if is_card_expired(self.expiry_month, self.expiry_year):
            raise ValueError("Card has expired")
        return self


class PaymentMethodResponse(BaseModel):
    id: int
    brand: str
    last4: str
    expiry_month: int
    expiry_year: int
    holder_name: str
    is_default: bool

    model_config = {"from_attributes": True}


class PaymentTransactionResponse(BaseModel):
    id: int
    user_id: int
    booking_id: Optional[int]
    payment_method_id: Optional[int]
    amount: Decimal
    status: PaymentStatus
    description: str
    receipt_ref: Optional[str]
    failure_reason: Optional[str]
    refunded_amount: Decimal
    refund_date: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}


class RefundRequest(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)


class RefundResponse(BaseModel):
    transaction: PaymentTransactionResponse
    refunded_amount: Decimal


class RevenueStatsResponse(BaseModel):
    total_revenue: Decimal
    total_refunded: Decimal
    net_revenue: Decimal
    monthly_revenue: Decimal
    total_transactions: int
    monthly_transactions: int
