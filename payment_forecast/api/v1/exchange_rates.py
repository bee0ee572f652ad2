"""GET /v1/exchange-rates - cached rate table and JPY conversion"""

import logging
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from payment_forecast.api.v1.schemas import ConversionResponse, ExchangeRatesResponse
from payment_forecast.api.dependencies import get_exchange_rate_cache, get_request_id
from payment_forecast.domain.currency import REPORTING_CURRENCY, convert_to_jpy, normalize_currency
from payment_forecast.domain.exceptions import ExchangeRateError, ExchangeRateTimeoutError
from payment_forecast.domain.models import ExchangeRateSnapshot
from payment_forecast.infrastructure.clients.exchange_rates import ExchangeRateCache

router = APIRouter()


async def _load_rates(cache: ExchangeRateCache, request_id: str) -> ExchangeRateSnapshot:
    """Map rate service failures to 504 (timeout) or 503 (anything else)"""
    try:
        return await cache.get_exchange_rates()
    except ExchangeRateTimeoutError as e:
        logging.warning(f"Exchange rate timeout: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=504, detail="Exchange rate service timed out")
    except ExchangeRateError as e:
        logging.error(f"Exchange rate error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Exchange rate service unavailable")


@router.get("/exchange-rates", response_model=ExchangeRatesResponse)
async def get_exchange_rates(
    request: Request,
    cache: ExchangeRateCache = Depends(get_exchange_rate_cache),
):
    """Current rate table (served from cache while fresh)"""
    snapshot = await _load_rates(cache, get_request_id(request))
    return ExchangeRatesResponse(base_currency=snapshot.base_currency, rates=snapshot.rates)


@router.get("/exchange-rates/convert", response_model=ConversionResponse)
async def convert_amount(
    request: Request,
    amount: Decimal = Query(..., description="Amount in the source currency"),
    currency: str = Query(..., min_length=3, max_length=3, description="ISO 4217 source currency"),
    cache: ExchangeRateCache = Depends(get_exchange_rate_cache),
):
    """Convert an amount into JPY"""
    source = normalize_currency(currency)
    if source == REPORTING_CURRENCY:
        return ConversionResponse(amount=amount, currency=source, amount_jpy=amount)

    snapshot = await _load_rates(cache, get_request_id(request))
    converted = convert_to_jpy(amount, source, snapshot)
    if converted is None:
        raise HTTPException(status_code=422, detail=f"Cannot convert {source} to JPY")

    return ConversionResponse(amount=amount, currency=source, amount_jpy=converted)
