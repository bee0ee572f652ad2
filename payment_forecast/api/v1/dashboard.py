"""POST /v1/dashboard - card overview with the upcoming payment calendar"""

import time
import logging
from dataclasses import asdict
from fastapi import APIRouter, Depends, Request

from payment_forecast.api.v1.schemas import DashboardRequest, DashboardResponse
from payment_forecast.api.dependencies import get_exchange_rate_cache, get_request_id
from payment_forecast.infrastructure.clients.exchange_rates import ExchangeRateCache
from payment_forecast.domain.dashboard import build_dashboard
from payment_forecast.domain.exceptions import ExchangeRateError, ExchangeRateTimeoutError
from payment_forecast.infrastructure.observability.metrics import conversion_fallback_counter, record_schedule
from payment_forecast.infrastructure.observability.logging import log_dashboard

router = APIRouter()


@router.post("/dashboard", response_model=DashboardResponse)
async def create_dashboard(
    request_body: DashboardRequest,
    request: Request,
    exchange_rate_cache: ExchangeRateCache = Depends(get_exchange_rate_cache),
):
    """
    Build the card overview for the supplied records.

    Flow:
    1. Load exchange rates (failure degrades to unconverted totals + warning)
    2. Compute per-card totals, unlinked subscriptions and upcoming payments
    3. Bucket payments by month and zero-fill monthly totals
    """
    start_time = time.time()
    request_id = get_request_id(request)

    # 1. Exchange rates
    exchange_rates = None
    exchange_rate_status = "ok"
    try:
        exchange_rates = await exchange_rate_cache.get_exchange_rates()
    except ExchangeRateTimeoutError as e:
        exchange_rate_status = "timeout"
        conversion_fallback_counter.labels(reason="timeout").inc()
        logging.warning(f"Exchange rate timeout: {e}", extra={"request_id": request_id})
    except ExchangeRateError as e:
        exchange_rate_status = "unavailable"
        conversion_fallback_counter.labels(reason="unavailable").inc()
        logging.error(f"Failed to load exchange rates: {e}", extra={"request_id": request_id})

    # 2-3. Schedule and totals
    dashboard = build_dashboard(
        cards=[card.to_domain() for card in request_body.cards],
        subscriptions=[subscription.to_domain() for subscription in request_body.subscriptions],
        exchange_rates=exchange_rates,
        reference_date=request_body.reference_date,
    )

    # Record metrics and logs
    payment_count = sum(
        len(month.credit_payments) + len(month.debit_payments) for month in dashboard.upcoming_payment_months
    )
    record_schedule(payment_count, dashboard.skipped)
    duration_ms = (time.time() - start_time) * 1000
    log_dashboard(
        request_id,
        card_count=len(request_body.cards),
        subscription_count=len(request_body.subscriptions),
        payment_count=payment_count,
        skipped_count=len(dashboard.skipped),
        exchange_rate_status=exchange_rate_status,
        duration_ms=duration_ms,
    )

    return DashboardResponse.model_validate(
        {**asdict(dashboard), "exchange_rate_status": exchange_rate_status}
    )
