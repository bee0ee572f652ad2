"""Unit tests for monthly buckets, monthly totals and per-card totals"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from payment_forecast.domain.aggregation import (
    align_monthly_totals,
    build_upcoming_payment_months,
    summarize_card_totals,
    summarize_monthly_totals,
)
from payment_forecast.domain.models import Card, ScheduledPayment, Subscription
from payment_forecast.utils.date_utils import month_key


def _payment(payment_date, amount, currency="JPY", card_type="credit", name="Service"):
    return ScheduledPayment(
        subscription_id=f"sub_{name}",
        card_id="card",
        card_name="Card",
        card_type=card_type,
        subscription_name=name,
        amount=Decimal(str(amount)),
        currency=currency,
        cycle="monthly",
        date=payment_date,
        month_key=month_key(payment_date),
    )


def test_build_upcoming_payment_months_is_contiguous_and_zero_filled():
    months = build_upcoming_payment_months([], limit=4, reference_date=date(2024, 11, 15))

    assert [m.month_key for m in months] == ["2024-11", "2024-12", "2025-01", "2025-02"]
    assert all(m.credit_payments == [] and m.debit_payments == [] for m in months)


def test_build_upcoming_payment_months_buckets_by_card_type():
    payments = [
        _payment(date(2024, 11, 20), 1000, card_type="credit", name="a"),
        _payment(date(2024, 12, 5), 500, card_type="debit", name="b"),
        _payment(date(2024, 12, 27), 800, card_type="credit", name="c"),
    ]

    months = build_upcoming_payment_months(payments, limit=3, reference_date=date(2024, 11, 1))

    assert [p.subscription_name for p in months[0].credit_payments] == ["a"]
    assert [p.subscription_name for p in months[1].debit_payments] == ["b"]
    assert [p.subscription_name for p in months[1].credit_payments] == ["c"]
    assert months[2].credit_payments == [] and months[2].debit_payments == []


def test_build_upcoming_payment_months_ignores_payments_outside_window():
    payments = [_payment(date(2025, 6, 1), 1000), _payment(date(2024, 10, 31), 1000)]

    months = build_upcoming_payment_months(payments, limit=2, reference_date=date(2024, 11, 1))

    assert sum(len(m.credit_payments) + len(m.debit_payments) for m in months) == 0


def test_build_upcoming_payment_months_default_limit():
    months = build_upcoming_payment_months([])

    assert len(months) == 4
    assert months[0].month_key == month_key(date.today())


def test_build_upcoming_payment_months_accepts_datetime_reference():
    months = build_upcoming_payment_months([], limit=2, reference_date=datetime(2024, 11, 30, 23, 59))

    assert [m.month_key for m in months] == ["2024-11", "2024-12"]


def test_summarize_monthly_totals_converts_foreign_amounts(snapshot):
    payments = [
        _payment(date(2024, 2, 3), 1000, "JPY", name="video"),
        _payment(date(2024, 2, 18), 10, "USD", name="cloud"),
        _payment(date(2024, 1, 9), 9, "EUR", name="news"),
    ]

    totals = summarize_monthly_totals(payments, snapshot)

    assert [t.month_key for t in totals] == ["2024-01", "2024-02"]
    assert totals[0].total_amount == Decimal("2700")
    assert totals[1].total_amount == Decimal("2500")
    assert not any(t.conversion_warning for t in totals)
    assert [d.name for d in totals[1].details] == ["video", "cloud"]
    assert totals[1].details[1].amount == Decimal("10")
    assert totals[1].details[1].currency == "USD"


def test_summarize_monthly_totals_without_rates_adds_original_amount():
    payments = [
        _payment(date(2024, 2, 3), 1000, "JPY", name="video"),
        _payment(date(2024, 2, 18), 10, "USD", name="cloud"),
    ]

    totals = summarize_monthly_totals(payments, None)

    assert totals[0].total_amount == Decimal("1010")
    assert totals[0].conversion_warning is True
    assert [p.subscription_name for p in totals[0].unconverted] == ["cloud"]


def test_summarize_monthly_totals_unknown_currency_warns(snapshot):
    payments = [_payment(date(2024, 3, 1), 20, "GBP", name="magazine"), _payment(date(2024, 4, 1), 100, "JPY")]

    totals = summarize_monthly_totals(payments, snapshot)

    assert totals[0].total_amount == Decimal("20")
    assert totals[0].conversion_warning is True
    assert totals[1].conversion_warning is False
    assert totals[1].unconverted == []


def test_summarize_monthly_totals_jpy_needs_no_rates():
    totals = summarize_monthly_totals([_payment(date(2024, 3, 1), 980, "JPY")], None)

    assert totals[0].total_amount == Decimal("980")
    assert totals[0].conversion_warning is False


def test_align_monthly_totals_zero_fills_missing_months(snapshot):
    months = build_upcoming_payment_months([], limit=3, reference_date=date(2024, 1, 1))
    totals = summarize_monthly_totals([_payment(date(2024, 2, 10), 500)], snapshot)

    aligned = align_monthly_totals(months, totals)

    assert [t.month_key for t in aligned] == ["2024-01", "2024-02", "2024-03"]
    assert [t.total_amount for t in aligned] == [Decimal("0"), Decimal("500"), Decimal("0")]
    assert aligned[0].details == []


@pytest.fixture
def cards():
    return [
        Card(id="visa", card_type="credit", card_name="Visa", payment_day=10),
        Card(id="debit", card_type="debit", card_name="Debit"),
        Card(id="empty", card_type="credit", card_name="Unused"),
    ]


@pytest.fixture
def subscriptions():
    return [
        Subscription(id="s1", card_id="visa", amount=1000, currency="JPY", payment_start_date="2024-01-15"),
        Subscription(id="s2", card_id="visa", amount="10", currency="USD", payment_start_date="2024-01-01"),
        Subscription(id="s3", card_id="debit", amount=500, payment_start_date="2024-01-20"),
        Subscription(id="s4", card_id="debit", amount="oops", payment_start_date="2024-01-20"),
        Subscription(id="s5", card_id="gone", amount=300, payment_start_date="2024-01-20"),
    ]


def test_summarize_card_totals(cards, subscriptions, snapshot):
    summaries = summarize_card_totals(cards, subscriptions, snapshot, reference_date=date(2024, 3, 12))

    visa, debit, empty = summaries
    assert visa.subscription_total == Decimal("2500")
    assert visa.conversion_warning is False
    assert [v.next_payment_date for v in visa.subscriptions] == [date(2024, 4, 10), date(2024, 4, 10)]

    assert debit.subscription_total == Decimal("500")
    assert [v.subscription.id for v in debit.subscriptions] == ["s3", "s4"]
    assert debit.subscriptions[0].next_payment_date == date(2024, 3, 20)

    assert empty.subscription_total == Decimal("0")
    assert empty.subscriptions == []


def test_summarize_card_totals_without_rates_warns(cards, subscriptions):
    visa = summarize_card_totals(cards, subscriptions, None, reference_date=date(2024, 3, 12))[0]

    assert visa.subscription_total == Decimal("1010")
    assert visa.conversion_warning is True


def test_summarize_card_totals_accepts_datetime_reference(cards, subscriptions, snapshot):
    debit = summarize_card_totals(cards, subscriptions, snapshot, reference_date=datetime(2024, 3, 20, 18, 0))[1]

    assert debit.subscriptions[0].next_payment_date == date(2024, 3, 20)


def test_summarize_card_totals_ignores_amounts_too_large_to_sum(cards, snapshot):
    subscriptions = [
        Subscription(id="ok", card_id="debit", amount=500, payment_start_date="2024-01-20"),
        Subscription(id="huge", card_id="debit", amount="1e1000000", payment_start_date="2024-01-20"),
    ]

    debit = summarize_card_totals(cards, subscriptions, snapshot, reference_date=date(2024, 3, 12))[1]

    assert debit.subscription_total == Decimal("500")
