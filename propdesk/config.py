"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service Configuration
    service_host: str = Field(default="0.0.0.0", description="Service host")
    service_port: int = Field(default=8000, description="Service port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Database Configuration
    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection URL. Unset runs on the in-memory repository",
    )
    db_pool_min_size: int = Field(default=0, description="Minimum connection pool size")
    db_pool_max_size: int = Field(default=10, description="Maximum connection pool size")

    # Accounting
    default_timezone: str = Field(
        default="UTC",
        description="IANA timezone used to bucket trades into calendar days when the caller sends none",
    )
    payout_included_statuses: list[str] = Field(
        default=["VALIDATED", "PAID"],
        description="Payout statuses that reduce balance and target progress",
    )
    metrics_cache_size: int = Field(
        default=256,
        ge=0,
        description="Max memoized AccountMetrics entries (0 disables caching)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
