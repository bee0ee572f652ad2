"""Date manipulation utilities for billing cycles

Months are calendar months (1-12). Two stepping policies exist:

- ``add_cycle`` re-clamps the date's own day, so a day lost to a short month
  stays lost (Jan 31 -> Feb 28 -> Mar 28).
- ``add_cycle_with_payment_day`` re-clamps a fixed target day every step
  (Jan 31 -> Feb 28 -> Mar 31).
"""

from calendar import monthrange
from datetime import date, datetime
from typing import Any

MONTHLY = "monthly"
YEARLY = "yearly"

# Every month has at least this many days, so days up to it never clamp
SAFE_DAY = 28


def normalize_cycle(cycle: Any) -> str:
    """Anything that is not "yearly" bills monthly"""
    return YEARLY if cycle == YEARLY else MONTHLY


def cycle_months(cycle: Any) -> int:
    return 12 if normalize_cycle(cycle) == YEARLY else 1


def days_in_month(year: int, month: int) -> int:
    """Number of days in a calendar month (handles leap years)"""
    return monthrange(year, month)[1]


def clamp_day_to_month(year: int, month: int, target_day: int) -> int:
    """Clamp any integer day into [1, days_in_month]"""
    safe_day = max(1, min(31, target_day))
    return min(safe_day, days_in_month(year, month))


def add_months(year: int, month: int, months: int, day: int) -> date:
    """Shift (year, month) by ``months`` and clamp ``day`` into the result"""
    total = year * 12 + (month - 1) + months
    new_year, new_month_index = divmod(total, 12)
    new_month = new_month_index + 1
    return date(new_year, new_month, clamp_day_to_month(new_year, new_month, day))


def add_cycle(current: date, cycle: str) -> date:
    """Step one cycle forward, re-clamping the date's current day"""
    return add_months(current.year, current.month, cycle_months(cycle), current.day)


def align_date_to_payment_day(current: date, target_day: int | None) -> date:
    """
    Snap a date forward to ``target_day`` in the same or the next month.

    Never moves backward. A missing target keeps the date's own day, which
    makes this the identity.
    """
    day = target_day if target_day is not None else current.day
    candidate = add_months(current.year, current.month, 0, day)
    if candidate < current:
        candidate = add_months(current.year, current.month, 1, day)
    return candidate


def add_cycle_with_payment_day(current: date, cycle: str, target_day: int | None) -> date:
    """Step one cycle forward, re-clamping ``target_day`` (no drift)"""
    day = target_day if target_day is not None else current.day
    return add_months(current.year, current.month, cycle_months(cycle), day)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month"""
    return (end.year - start.year) * 12 + (end.month - start.month)


def start_of_month(value: date) -> date:
    return value.replace(day=1)


def end_of_month_after(value: date, months: int) -> date:
    """Last day of the month ``months`` months after value's month"""
    return add_months(value.year, value.month, months, 31)


def month_key(value: date) -> str:
    """YYYY-MM key used to group payments by month"""
    return f"{value.year:04d}-{value.month:02d}"


def parse_date_input(value: Any) -> date | None:
    """Convert a date, datetime or ISO string into a date; None when unusable"""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def to_reference_date(value: date | datetime | None) -> date:
    """Reference point for schedules: today when missing, midnight of a datetime"""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value
