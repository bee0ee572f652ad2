"""Exchange rate payload validation and conversion into the reporting currency"""

from decimal import Decimal
from typing import Any, Dict, Optional

from payment_forecast.domain.models import ExchangeRateSnapshot
from payment_forecast.utils.number_utils import parse_amount, parse_decimal

REPORTING_CURRENCY = "JPY"
DEFAULT_BASE_CURRENCY = "USD"


def normalize_currency(value: Any) -> str:
    """Upper-case currency code; empty means the reporting currency"""
    if not isinstance(value, str) or not value.strip():
        return REPORTING_CURRENCY
    return value.strip().upper()


def normalize_rates(payload: Any) -> Optional[ExchangeRateSnapshot]:
    """
    Turn a rate service response into a snapshot.

    Accepts ``{"result": "success", "base_code": "USD", "rates": {...}}`` and
    the older ``{"base": ..., "rates": ...}`` shape. Returns None when the
    payload reports failure or has no usable JPY rate.
    """
    if not isinstance(payload, dict):
        return None
    result = payload.get("result")
    if result and result != "success":
        return None

    base = payload.get("base_code") or payload.get("base") or DEFAULT_BASE_CURRENCY
    raw_rates = payload.get("rates")
    if not isinstance(raw_rates, dict):
        return None

    rates: Dict[str, Decimal] = {}
    for code, value in raw_rates.items():
        rate = _parse_rate(value)
        if rate is not None and isinstance(code, str):
            rates[code.upper()] = rate

    if REPORTING_CURRENCY not in rates:
        return None

    return ExchangeRateSnapshot(base_currency=normalize_currency(base), rates=rates)


def convert_to_jpy(
    amount: Any,
    currency: Any,
    exchange_rates: Optional[ExchangeRateSnapshot],
) -> Optional[Decimal]:
    """
    Convert an amount into JPY using a rate snapshot.

    JPY amounts pass through untouched whatever the snapshot. Returns None,
    never raises, when the amount or any needed rate is unusable.
    """
    numeric_amount = parse_amount(amount)
    if numeric_amount is None:
        return None

    source = normalize_currency(currency)
    if source == REPORTING_CURRENCY:
        return numeric_amount

    if exchange_rates is None or not exchange_rates.rates:
        return None

    rate_for_jpy = _parse_rate(exchange_rates.rates.get(REPORTING_CURRENCY))
    if rate_for_jpy is None:
        return None

    base_currency = normalize_currency(exchange_rates.base_currency or DEFAULT_BASE_CURRENCY)
    if source == base_currency:
        return numeric_amount * rate_for_jpy

    rate_for_source = _parse_rate(exchange_rates.rates.get(source))
    if rate_for_source is None:
        return None

    return numeric_amount * (rate_for_jpy / rate_for_source)


def _parse_rate(value: Any) -> Optional[Decimal]:
    """Rates must be finite, strictly positive and of sane magnitude"""
    rate = parse_decimal(value)
    if rate is None or rate <= 0:
        return None
    return rate
