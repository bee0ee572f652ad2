"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from payment_forecast.infrastructure.clients.exchange_rates import ExchangeRateCache


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_exchange_rate_cache(request: Request) -> ExchangeRateCache:
    """Provide the application's shared exchange rate cache"""
    return request.app.state.exchange_rate_cache
