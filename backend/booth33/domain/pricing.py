"""
Studio pricing and the credit allocator.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

Number = Union[int, Decimal]

# Hours -> price in dollars. 8 hours is the full-day package.
DURATION_PRICES: dict[int, Decimal] = {
    1: Decimal("60"),
    2: Decimal("120"),
    3: Decimal("180"),
    4: Decimal("250"),
    8: Decimal("500"),
}

FULL_DAY_HOURS = 8


def price_for_duration(hours: int) -> Decimal:
    try:
        return DURATION_PRICES[hours]
    except KeyError:
        raise ValueError(f"No price for a {hours}-hour booking") from None


def duration_label(hours: int) -> str:
    if hours == FULL_DAY_HOURS:
        return "Full Day"
    return f"{hours}hr" if hours == 1 else f"{hours}hrs"


@dataclass(frozen=True)
class CreditUsage:
    credits_to_use: Decimal
    remaining_price: Decimal
    can_cover_full: bool


def calculate_credit_usage(balance: Number, price: Number) -> CreditUsage:
    """
    Split a price between the user's credit balance and a card charge.

    `credits_to_use + remaining_price == price` exactly.
    """
    balance, price = Decimal(balance), Decimal(price)
    if balance < 0 or price < 0:
        raise ValueError("Balance and price must be non-negative")

    credits_to_use = min(balance, price)
    remaining_price = price - credits_to_use
    return CreditUsage(
        credits_to_use=credits_to_use,
        remaining_price=remaining_price,
        can_cover_full=credits_to_use == price,
    )
