"""Exchange rate HTTP client and the time-limited rate cache"""

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Callable, Optional

import httpx

from payment_forecast.config import settings
from payment_forecast.domain.currency import normalize_rates
from payment_forecast.domain.exceptions import (
    ExchangeRateAPIError,
    ExchangeRateTimeoutError,
    InvalidExchangeRatePayloadError,
)
from payment_forecast.domain.models import ExchangeRateSnapshot
from payment_forecast.infrastructure.observability.metrics import (
    exchange_rate_cache_hit_counter,
    exchange_rate_fetch_counter,
)

logger = logging.getLogger(__name__)


class ExchangeRateClient:
    """Client for the external latest-rates API"""

    def __init__(
        self,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url or settings.exchange_rate_api_url
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.transport = transport

    async def fetch_latest(self) -> Any:
        """
        Fetch the latest rate table as decoded JSON.

        Raises:
            ExchangeRateTimeoutError: No answer within the timeout
            ExchangeRateAPIError: HTTP error, network failure or non-JSON body
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(self.api_url)
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                raise ExchangeRateTimeoutError(f"Exchange rate API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ExchangeRateAPIError(
                    f"Failed to load exchange rates (status {e.response.status_code})"
                ) from e
            except httpx.RequestError as e:
                raise ExchangeRateAPIError(f"Exchange rate API unreachable: {e}") from e
            except ValueError as e:
                raise ExchangeRateAPIError(f"Exchange rate API returned invalid JSON: {e}") from e


class ExchangeRateCache:
    """
    Holds the latest rate snapshot for ``ttl_seconds``.

    One instance is owned by the application and shared by all requests.
    The check-fetch-store sequence runs under a lock, so concurrent misses
    wait for a single upstream fetch. Failures propagate: there is no stale
    serving past the TTL and no retry.
    """

    def __init__(
        self,
        client: ExchangeRateClient | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client or ExchangeRateClient()
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.exchange_rate_cache_ttl_seconds
        self.clock = clock
        self._snapshot: Optional[ExchangeRateSnapshot] = None
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> Optional[ExchangeRateSnapshot]:
        return self._snapshot

    def is_fresh(self) -> bool:
        snapshot = self._snapshot
        return snapshot is not None and snapshot.expires_at is not None and self.clock() < snapshot.expires_at

    async def get_exchange_rates(self) -> ExchangeRateSnapshot:
        """Cached snapshot while fresh, otherwise a newly fetched one"""
        if self.is_fresh():
            exchange_rate_cache_hit_counter.inc()
            return self._snapshot

        async with self._lock:
            # Another waiter may have refreshed while we queued
            if self.is_fresh():
                exchange_rate_cache_hit_counter.inc()
                return self._snapshot
            return await self._refresh_locked()

    async def refresh(self) -> ExchangeRateSnapshot:
        """Fetch a new snapshot regardless of the current one"""
        async with self._lock:
            return await self._refresh_locked()

    def invalidate(self) -> None:
        self._snapshot = None

    async def _refresh_locked(self) -> ExchangeRateSnapshot:
        try:
            payload = await self.client.fetch_latest()
        except ExchangeRateTimeoutError as e:
            exchange_rate_fetch_counter.labels(outcome="timeout").inc()
            logger.warning(f"Exchange rate fetch timed out: {e}")
            raise
        except ExchangeRateAPIError as e:
            exchange_rate_fetch_counter.labels(outcome="error").inc()
            logger.error(f"Exchange rate fetch failed: {e}")
            raise

        normalized = normalize_rates(payload)
        if normalized is None:
            exchange_rate_fetch_counter.labels(outcome="invalid").inc()
            logger.error("Exchange rate payload rejected", extra={"api_url": self.client.api_url})
            raise InvalidExchangeRatePayloadError("Exchange rate payload is invalid")

        snapshot = replace(normalized, expires_at=self.clock() + self.ttl_seconds)
        self._snapshot = snapshot
        exchange_rate_fetch_counter.labels(outcome="success").inc()
        logger.info(
            "Exchange rates refreshed",
            extra={
                "base_currency": snapshot.base_currency,
                "rate_count": len(snapshot.rates),
                "ttl_seconds": self.ttl_seconds,
            },
        )
        return snapshot
