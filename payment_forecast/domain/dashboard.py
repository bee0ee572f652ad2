"""Card overview composition - cards, unlinked subscriptions and the payment calendar"""

from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional

from payment_forecast.domain.aggregation import (
    align_monthly_totals,
    build_upcoming_payment_months,
    index_cards,
    summarize_card_totals,
    summarize_monthly_totals,
)
from payment_forecast.domain.models import (
    Card,
    Dashboard,
    ExchangeRateSnapshot,
    Skipped,
    Subscription,
    normalize_card_type,
)
from payment_forecast.domain.schedule import (
    collect_payments,
    find_unlinked_subscriptions,
    plan_upcoming_payments,
)
from payment_forecast.utils.date_utils import start_of_month, to_reference_date


def build_dashboard(
    cards: Iterable[Card],
    subscriptions: Iterable[Subscription],
    exchange_rates: Optional[ExchangeRateSnapshot],
    reference_date: date | None = None,
    months_limit: int | None = None,
) -> Dashboard:
    """
    Compute the card overview for one user.

    ``exchange_rates`` may be None when the rate service failed; totals then
    include unconverted foreign amounts and carry ``conversion_warning``.

    Flow:
    1. Normalize card types and index cards by id
    2. Per-card totals and next payment dates
    3. Subscriptions whose card is gone
    4. Upcoming payments from the first day of the reference month
    5. Month buckets and zero-filled monthly totals
    """
    reference_date = to_reference_date(reference_date)
    subscriptions = list(subscriptions)

    normalized_cards: List[Card] = [_with_normalized_type(card) for card in cards]
    card_map = index_cards(normalized_cards)

    card_summaries = summarize_card_totals(normalized_cards, subscriptions, exchange_rates, reference_date)
    unlinked = find_unlinked_subscriptions(subscriptions, card_map)

    results = plan_upcoming_payments(
        subscriptions,
        card_map,
        start_date_limit=start_of_month(reference_date),
        months_limit=months_limit,
    )
    payments = collect_payments(results)

    months = build_upcoming_payment_months(payments, limit=months_limit, reference_date=reference_date)
    monthly_totals = align_monthly_totals(months, summarize_monthly_totals(payments, exchange_rates))

    conversion_warning = any(s.conversion_warning for s in card_summaries) or any(
        t.conversion_warning for t in monthly_totals
    )

    return Dashboard(
        cards=card_summaries,
        unlinked_subscriptions=unlinked,
        upcoming_payment_months=months,
        monthly_totals=monthly_totals,
        skipped=[result for result in results if isinstance(result, Skipped)],
        conversion_warning=conversion_warning,
    )


def _with_normalized_type(card: Card) -> Card:
    return replace(card, card_type=normalize_card_type(card.card_type))
