"""Monthly aggregation of upcoming payments in the reporting currency"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from payment_forecast.config import settings
from payment_forecast.domain.currency import REPORTING_CURRENCY, convert_to_jpy, normalize_currency
from payment_forecast.domain.models import (
    DEBIT,
    Card,
    CardSummary,
    ExchangeRateSnapshot,
    MonthlyTotal,
    MonthlyTotalDetail,
    ScheduledPayment,
    Subscription,
    SubscriptionView,
    UpcomingPaymentMonth,
)
from payment_forecast.domain.schedule import compute_next_payment_date, group_subscriptions_by_card
from payment_forecast.utils.date_utils import add_months, month_key, to_reference_date
from payment_forecast.utils.number_utils import parse_amount


def build_upcoming_payment_months(
    payments: Iterable[ScheduledPayment],
    limit: int | None = None,
    reference_date: date | None = None,
) -> List[UpcomingPaymentMonth]:
    """
    Contiguous months starting at the reference month (default: this month).

    Every month is present even without payments. Payments are bucketed by
    card type; payments outside the window are dropped.
    """
    if limit is None:
        limit = settings.upcoming_months
    reference_date = to_reference_date(reference_date)

    months = [
        UpcomingPaymentMonth(month_key=month_key(add_months(reference_date.year, reference_date.month, i, 1)))
        for i in range(limit)
    ]
    month_map = {month.month_key: month for month in months}

    for payment in payments:
        target = month_map.get(payment.month_key)
        if target is None:
            continue
        if payment.card_type == DEBIT:
            target.debit_payments.append(payment)
        else:
            target.credit_payments.append(payment)

    return months


def summarize_monthly_totals(
    payments: Iterable[ScheduledPayment],
    exchange_rates: Optional[ExchangeRateSnapshot],
) -> List[MonthlyTotal]:
    """
    Per-month totals in JPY, sorted by month key.

    An amount that cannot be converted (no snapshot, unknown currency) is
    added as-is so the month never shows zero; the month is flagged with
    ``conversion_warning`` and the payment is listed in ``unconverted``.
    """
    summary: Dict[str, MonthlyTotal] = {}
    for payment in payments:
        total = summary.setdefault(payment.month_key, MonthlyTotal(month_key=payment.month_key))
        amount, converted = _to_reporting_currency(payment.amount, payment.currency, exchange_rates)
        if not converted:
            total.conversion_warning = True
            total.unconverted.append(payment)
        total.total_amount += amount
        total.details.append(
            MonthlyTotalDetail(
                name=payment.subscription_name,
                amount=payment.amount,
                currency=payment.currency,
                cycle=payment.cycle,
            )
        )

    return [summary[key] for key in sorted(summary)]


def align_monthly_totals(
    months: Iterable[UpcomingPaymentMonth],
    totals: Iterable[MonthlyTotal],
) -> List[MonthlyTotal]:
    """Totals in the order of ``months``, zero for months without payments"""
    by_key = {total.month_key: total for total in totals}
    return [by_key.get(month.month_key) or MonthlyTotal(month_key=month.month_key) for month in months]


def summarize_card_totals(
    cards: Iterable[Card],
    subscriptions: Iterable[Subscription],
    exchange_rates: Optional[ExchangeRateSnapshot],
    reference_date: date | None = None,
) -> List[CardSummary]:
    """Each card with its subscriptions, next payment dates and JPY total"""
    reference_date = to_reference_date(reference_date)
    grouped = group_subscriptions_by_card(subscriptions)

    summaries: List[CardSummary] = []
    for card in cards:
        related = grouped.get(card.id, [])
        total = Decimal("0")
        warning = False
        for subscription in related:
            amount = parse_amount(subscription.amount)
            if amount is None or amount <= 0:
                continue
            value, converted = _to_reporting_currency(amount, subscription.currency, exchange_rates)
            warning = warning or not converted
            total += value

        summaries.append(
            CardSummary(
                card=card,
                subscriptions=[
                    SubscriptionView(
                        subscription=subscription,
                        next_payment_date=compute_next_payment_date(subscription, card, reference_date),
                    )
                    for subscription in related
                ],
                subscription_total=total,
                conversion_warning=warning,
            )
        )
    return summaries


def index_cards(cards: Iterable[Card]) -> Mapping[str, Card]:
    return {card.id: card for card in cards}


def _to_reporting_currency(
    amount: Decimal,
    currency: Optional[str],
    exchange_rates: Optional[ExchangeRateSnapshot],
) -> Tuple[Decimal, bool]:
    """(amount in JPY, True) or (original amount, False) when conversion fails"""
    if normalize_currency(currency) == REPORTING_CURRENCY:
        return amount, True
    converted = convert_to_jpy(amount, currency, exchange_rates)
    if converted is None:
        return amount, False
    return converted, True
