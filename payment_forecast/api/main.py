"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from payment_forecast.api.middleware import RequestIDMiddleware, MetricsMiddleware
from payment_forecast.api.v1 import dashboard, exchange_rates, schedule
from payment_forecast.infrastructure.clients.exchange_rates import ExchangeRateCache
from payment_forecast.infrastructure.observability.logging import setup_logging
from payment_forecast.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app(exchange_rate_cache: ExchangeRateCache | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Payment Forecast",
        description="Subscription payment schedules and JPY-normalized monthly totals",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # One rate cache per application, shared by all requests
    app.state.exchange_rate_cache = exchange_rate_cache or ExchangeRateCache()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(schedule.router, prefix="/v1", tags=["schedule"])
    app.include_router(dashboard.router, prefix="/v1", tags=["dashboard"])
    app.include_router(exchange_rates.router, prefix="/v1", tags=["exchange-rates"])

    return app


app = create_app()
