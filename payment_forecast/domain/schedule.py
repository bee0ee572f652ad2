"""Recurring payment schedule - next occurrence and upcoming payment enumeration"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from payment_forecast.config import settings
from payment_forecast.domain.currency import normalize_currency
from payment_forecast.domain.models import (
    CREDIT,
    DEFAULT_CARD_NAME,
    Card,
    ScheduledPayment,
    Scheduled,
    ScheduleResult,
    Skipped,
    Subscription,
    normalize_card_type,
)
from payment_forecast.utils.date_utils import (
    SAFE_DAY,
    YEARLY,
    add_cycle_with_payment_day,
    add_months,
    align_date_to_payment_day,
    cycle_months,
    end_of_month_after,
    month_key,
    months_between,
    normalize_cycle,
    parse_date_input,
    to_reference_date,
)
from payment_forecast.utils.number_utils import parse_amount, parse_day_of_month

# Stepping only iterates while a clamp can still lower the day. That phase
# ends at the latest after two Februaries (leap then non-leap), i.e. 24
# monthly steps, so these caps are only reachable with malformed input.
MAX_RESOLVER_STEPS = 120
MAX_CATCH_UP_STEPS = 60

SKIP_INVALID_AMOUNT = "invalid_amount"
SKIP_INVALID_START_DATE = "invalid_start_date"
SKIP_NO_OCCURRENCE = "no_occurrence"


def resolve_payment_day(card: Optional[Card]) -> Optional[int]:
    """Payment day governing a credit card schedule, None if unusable"""
    if card is None or normalize_card_type(card.card_type) != CREDIT:
        return None
    return parse_day_of_month(card.payment_day)


def first_occurrence(start_date: date, payment_day: Optional[int]) -> date:
    """
    First charge date of a subscription.

    Credit cards with a payment day charge on that day, on or after the start
    date. Everything else is anchored to the start date itself.
    """
    return align_date_to_payment_day(start_date, payment_day)


def next_occurrence(current: date, cycle: str, payment_day: Optional[int]) -> date:
    """Occurrence one cycle after ``current``; re-snaps to payment_day when given"""
    return add_cycle_with_payment_day(current, cycle, payment_day)


def first_on_or_after(
    start_date: date,
    minimum: date,
    cycle: str,
    payment_day: Optional[int],
    max_steps: int,
) -> Optional[date]:
    """
    Earliest occurrence on or after ``minimum`` of a schedule starting at
    ``start_date``.

    Jumps in closed form whenever the day of month can no longer change and
    steps one cycle at a time otherwise. Returns None if the stepping phase
    exceeds ``max_steps`` or the date leaves the supported calendar range.
    """
    try:
        return _advance(first_occurrence(start_date, payment_day), minimum, cycle, payment_day, max_steps)
    except (ValueError, OverflowError):
        return None


def _advance(
    current: date,
    minimum: date,
    cycle: str,
    payment_day: Optional[int],
    max_steps: int,
) -> Optional[date]:
    steps = 0
    while current < minimum:
        if payment_day is None and _may_drift(current, cycle):
            if steps >= max_steps:
                return None
            current = next_occurrence(current, cycle, payment_day)
            steps += 1
            continue

        day = payment_day if payment_day is not None else current.day
        step = cycle_months(cycle)
        cycles = months_between(current, minimum) // step
        candidate = add_months(current.year, current.month, cycles * step, day)
        if candidate < minimum:
            candidate = add_months(current.year, current.month, (cycles + 1) * step, day)
        return candidate
    return current


def _may_drift(current: date, cycle: str) -> bool:
    """Whether a later anchored step could clamp the current day lower"""
    if normalize_cycle(cycle) == YEARLY:
        return current.month == 2 and current.day == 29
    return current.day > SAFE_DAY


def compute_next_payment_date(
    subscription: Subscription,
    card: Optional[Card],
    reference_date: date | None = None,
) -> Optional[date]:
    """
    Next charge date on or after the reference date (default: today).

    Returns None when nothing is scheduled: unparseable start date or
    exhausted stepping guard. Callers must not treat None as an error.
    """
    start_date = parse_date_input(subscription.payment_start_date)
    if start_date is None:
        return None
    reference_date = to_reference_date(reference_date)

    payment_day = resolve_payment_day(card)
    cycle = normalize_cycle(subscription.cycle)
    return first_on_or_after(
        start_date,
        reference_date,
        cycle,
        payment_day,
        MAX_RESOLVER_STEPS,
    )


def plan_upcoming_payments(
    subscriptions: Iterable[Subscription],
    card_map: Mapping[str, Card],
    start_date_limit: date | None = None,
    months_limit: int | None = None,
) -> List[ScheduleResult]:
    """
    Project every subscription onto the horizon, one result per subscription.

    Horizon: last day of the month ``months_limit - 1`` months after
    ``start_date_limit`` (4 months covers the current month and the next 3).
    Each subscription contributes at most ``max_upcoming_events`` payments.
    """
    start_date_limit = to_reference_date(start_date_limit)
    if months_limit is None:
        months_limit = settings.upcoming_months
    horizon = end_of_month_after(start_date_limit, months_limit - 1)
    max_events = settings.max_upcoming_events

    results: List[ScheduleResult] = []
    for subscription in subscriptions:
        amount = parse_amount(subscription.amount)
        if amount is None or amount <= 0:
            results.append(Skipped(subscription.id, SKIP_INVALID_AMOUNT))
            continue
        start_date = parse_date_input(subscription.payment_start_date)
        if start_date is None:
            results.append(Skipped(subscription.id, SKIP_INVALID_START_DATE))
            continue

        card = card_map.get(subscription.card_id) if subscription.card_id else None
        payment_day = resolve_payment_day(card)
        cycle = normalize_cycle(subscription.cycle)
        next_date = first_on_or_after(
            start_date,
            start_date_limit,
            cycle,
            payment_day,
            MAX_CATCH_UP_STEPS,
        )
        if next_date is None:
            results.append(Skipped(subscription.id, SKIP_NO_OCCURRENCE))
            continue

        payments: List[ScheduledPayment] = []
        while next_date <= horizon and len(payments) < max_events:
            payments.append(_scheduled_payment(subscription, card, amount, cycle, next_date))
            try:
                next_date = next_occurrence(next_date, cycle, payment_day)
            except ValueError:
                break  # past date.max
        results.append(Scheduled(subscription.id, payments))

    return results


def calculate_upcoming_payments(
    subscriptions: Iterable[Subscription],
    card_map: Mapping[str, Card],
    start_date_limit: date | None = None,
    months_limit: int | None = None,
) -> List[ScheduledPayment]:
    """
    Upcoming payments of all subscriptions, sorted by date.

    Subscriptions with bad amounts or start dates are left out silently; use
    ``plan_upcoming_payments`` to see them. The combined list never exceeds
    ``max_upcoming_events`` entries.
    """
    results = plan_upcoming_payments(subscriptions, card_map, start_date_limit, months_limit)
    return collect_payments(results)


def collect_payments(results: Iterable[ScheduleResult]) -> List[ScheduledPayment]:
    """Merge scheduled results, earliest first, capped at max_upcoming_events"""
    entries = [
        payment
        for result in results
        if isinstance(result, Scheduled)
        for payment in result.payments
    ]
    entries.sort(key=lambda p: p.date)
    return entries[: settings.max_upcoming_events]


def group_subscriptions_by_card(
    subscriptions: Iterable[Subscription],
) -> Dict[Optional[str], List[Subscription]]:
    grouped: Dict[Optional[str], List[Subscription]] = {}
    for subscription in subscriptions:
        grouped.setdefault(subscription.card_id, []).append(subscription)
    return grouped


def find_unlinked_subscriptions(
    subscriptions: Iterable[Subscription],
    card_map: Mapping[str, Card],
) -> List[Subscription]:
    """Subscriptions whose card no longer exists"""
    return [s for s in subscriptions if s.card_id not in card_map]


def _scheduled_payment(
    subscription: Subscription,
    card: Optional[Card],
    amount: Decimal,
    cycle: str,
    payment_date: date,
) -> ScheduledPayment:
    return ScheduledPayment(
        subscription_id=subscription.id,
        card_id=subscription.card_id,
        card_name=(card.card_name if card else "") or DEFAULT_CARD_NAME,
        card_type=normalize_card_type(card.card_type if card else None),
        subscription_name=subscription.service_name,
        amount=amount,
        currency=normalize_currency(subscription.currency),
        cycle=cycle,
        date=payment_date,
        month_key=month_key(payment_date),
        notes=subscription.notes or "",
    )
