"""Input validators shared by the account and affiliate stores."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

# Generic email regex
EMAIL_REGEX = r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$"


def is_email(value: Any) -> bool:
    """Check whether value looks like an email address."""
    if not isinstance(value, str):
        return False
    return re.match(EMAIL_REGEX, value.strip()) is not None


def parse_amount(value: Any) -> Decimal | None:
    """Parse a non-negative decimal amount (rate, earnings).

    Returns:
        The amount, or None if value is not a finite non-negative number
    """
    if isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


CENT = Decimal("0.01")
# Largest amount a Numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")


def parse_money(value: Any) -> Decimal | None:
    """Parse an amount and round it to cents.

    Returns:
        The rounded amount, or None if it is invalid or too large to store
    """
    amount = parse_amount(value)
    if amount is None:
        return None
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if amount > MAX_AMOUNT:
        return None
    return amount
