"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger.json import JsonFormatter

from payment_forecast.config import settings


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_dashboard(
    request_id: str,
    card_count: int,
    subscription_count: int,
    payment_count: int,
    skipped_count: int,
    exchange_rate_status: str,
    duration_ms: float,
) -> None:
    """Log structured dashboard outcome for analysis"""
    logging.info(
        "Dashboard built",
        extra={
            "request_id": request_id,
            "step": "dashboard_complete",
            "card_count": card_count,
            "subscription_count": subscription_count,
            "payment_count": payment_count,
            "skipped_count": skipped_count,
            "exchange_rate_status": exchange_rate_status,
            "duration_ms": duration_ms,
        },
    )
