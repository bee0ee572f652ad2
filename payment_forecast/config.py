"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # External Services
    exchange_rate_api_url: str = "https://open.er-api.com/v6/latest/USD"

    # Service
    service_name: str = "payment-forecast"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 8.0

    # Exchange rate cache
    exchange_rate_cache_ttl_seconds: float = 60 * 60

    # Schedule
    upcoming_months: int = 4
    max_upcoming_events: int = 24


settings = Settings()
