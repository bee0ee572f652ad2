"""Lenient parsing for user-entered numbers"""

from decimal import Decimal, InvalidOperation
from typing import Any

# Largest accepted power of ten in either direction. Keeps sums and
# conversions of accepted values inside the default decimal context.
MAX_MAGNITUDE = 18


def parse_decimal(value: Any) -> Decimal | None:
    """Finite Decimal of sane magnitude, None for anything else"""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    if number and not -MAX_MAGNITUDE <= number.adjusted() <= MAX_MAGNITUDE:
        return None
    return number


def parse_amount(value: Any) -> Decimal | None:
    """Parse a monetary amount; None for empty, non-numeric, non-finite or out-of-range input"""
    return parse_decimal(value)


def parse_day_of_month(value: Any) -> int | None:
    """Parse a 1-31 day-of-month setting (billing, closing or payment day); "31.0" counts as 31"""
    number = parse_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    if number < 1 or number > 31:
        return None
    return int(number)
