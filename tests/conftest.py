"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Any, Callable, Dict, List
import httpx
from fastapi.testclient import TestClient
from payment_forecast.api.main import create_app
from payment_forecast.domain.models import Card, ExchangeRateSnapshot, Subscription
from payment_forecast.domain.currency import normalize_rates
from payment_forecast.infrastructure.clients.exchange_rates import ExchangeRateCache, ExchangeRateClient


RATES_URL = "https://rates.test/v6/latest/USD"

SAMPLE_RATES_PAYLOAD: Dict[str, Any] = {
    "result": "success",
    "base_code": "USD",
    "rates": {"USD": 1, "JPY": 150, "EUR": 0.5},
}


class FakeClock:
    """Monotonic clock that only moves when told to"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RateService:
    """Programmable stand-in for the upstream rate API"""

    def __init__(self, payload: Any = None, status_code: int = 200):
        self.payload = SAMPLE_RATES_PAYLOAD if payload is None else payload
        self.status_code = status_code
        self.error: Exception | None = None
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.payload)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def rate_service() -> RateService:
    return RateService()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_cache(clock: FakeClock) -> Callable[[RateService], ExchangeRateCache]:
    """Build a cache wired to a fake rate service and the fake clock"""

    def _make(service: RateService, ttl_seconds: float = 3600) -> ExchangeRateCache:
        client = ExchangeRateClient(api_url=RATES_URL, timeout=1.0, transport=service.transport())
        return ExchangeRateCache(client=client, ttl_seconds=ttl_seconds, clock=clock)

    return _make


@pytest.fixture
def client(rate_service: RateService, make_cache) -> TestClient:
    """Create FastAPI test client backed by the fake rate service"""
    app = create_app(exchange_rate_cache=make_cache(rate_service))
    return TestClient(app)


@pytest.fixture
def snapshot() -> ExchangeRateSnapshot:
    """USD-based snapshot: 1 USD = 150 JPY = 0.5 EUR"""
    return normalize_rates(SAMPLE_RATES_PAYLOAD)


@pytest.fixture
def credit_card() -> Card:
    return Card(id="card_credit", user_id="user_1", card_type="credit", card_name="Main Visa", closing_day=15, payment_day=27)


@pytest.fixture
def debit_card() -> Card:
    return Card(id="card_debit", user_id="user_1", card_type="debit", card_name="Bank Debit")


@pytest.fixture
def sample_subscriptions() -> List[Subscription]:
    """A small, realistic subscription set across both cards"""
    return [
        Subscription(
            id="sub_video",
            card_id="card_credit",
            service_name="Video streaming",
            amount=1490,
            currency="JPY",
            cycle="monthly",
            payment_start_date=date(2023, 11, 3),
        ),
        Subscription(
            id="sub_cloud",
            card_id="card_debit",
            service_name="Cloud storage",
            amount="9.99",
            currency="USD",
            cycle="monthly",
            payment_start_date=date(2023, 6, 18),
        ),
        Subscription(
            id="sub_domain",
            card_id="card_credit",
            service_name="Domain renewal",
            amount=1200,
            currency="JPY",
            cycle="yearly",
            payment_start_date=date(2022, 2, 10),
        ),
    ]
