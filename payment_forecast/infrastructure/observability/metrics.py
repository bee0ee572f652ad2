"""Prometheus metrics for rate service health, currency fallbacks and schedule output"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from payment_forecast.domain.models import Skipped

# Exchange rate metrics
exchange_rate_fetch_counter = Counter(
    "exchange_rate_fetch_total",
    "Upstream exchange rate fetches",
    ["outcome"],  # success | timeout | error | invalid
)

exchange_rate_cache_hit_counter = Counter(
    "exchange_rate_cache_hits_total",
    "Exchange rate lookups served from cache",
)

conversion_fallback_counter = Counter(
    "payment_forecast_conversion_fallback_total",
    "Dashboards built without usable exchange rates",
    ["reason"],  # timeout | unavailable
)

# Schedule metrics
skipped_subscription_counter = Counter(
    "payment_forecast_skipped_subscriptions_total",
    "Subscriptions left out of the schedule",
    ["reason"],  # invalid_amount | invalid_start_date | no_occurrence
)

upcoming_payments_histogram = Histogram(
    "payment_forecast_upcoming_payments",
    "Upcoming payments returned per schedule",
    buckets=[0, 1, 2, 4, 8, 12, 16, 24],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_schedule(payment_count: int, skipped: Iterable[Skipped]) -> None:
    """Record schedule size and why subscriptions were dropped"""
    upcoming_payments_histogram.observe(payment_count)
    for result in skipped:
        skipped_subscription_counter.labels(reason=result.reason).inc()
