"""
Input rules shared by the request schemas.
"""

import re
from datetime import date
from typing import Optional

USERNAME_PATTERN = r"^[a-zA-Z0-9_]{3,20}$"
CVV_PATTERN = re.compile(r"^\d{3,4}$")


def password_problems(password: str) -> list[str]:
    problems = []
    if len(password) < 8:
        problems.append("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        problems.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        problems.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        problems.append("Password must contain at least one number")
    return problems


def clean_card_number(card_number: str) -> str:
    return re.sub(r"\s", "", card_number)


def passes_luhn(digits: str) -> bool:
    total = 0
    for position, char in enumerate(reversed(digits)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def is_valid_card_number(card_number: str) -> bool:
    digits = clean_card_number(card_number)
    if not digits.isdigit() or not 15 <= len(digits) <= 16:
        return False
    return passes_luhn(digits)


def card_brand(card_number: str) -> str:
    digits = clean_card_number(card_number)
    if re.match(r"^4", digits):
        return "visa"
    if re.match(r"^5[1-5]", digits):
        return "mastercard"
    if re.match(r"^3[47]", digits):
        return "amex"
    if re.match(r"^6(?:011|5)", digits):
        return "discover"
    return "unknown"


def is_card_expired(month: int, year: int, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return (year, month) < (today.year, today.month)
