"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from referral_ledger.config.constants import (
    AGGREGATION_ROW_CAP,
    DEFAULT_REFERRAL_BASE_URL,
    REFERRAL_CODE_MAX_ATTEMPTS,
    REFERRAL_COMMISSION_RATE,
    STORAGE_RETRY_ATTEMPTS,
    STORAGE_RETRY_BASE_DELAY_SECONDS,
    STORAGE_RETRY_MAX_DELAY_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Referral program
    referral_base_url: str = Field(
        default=DEFAULT_REFERRAL_BASE_URL,
        description="Public site origin used to build referral links"
    )
    referral_commission_rate: Decimal = Field(
        default=REFERRAL_COMMISSION_RATE,
        description="Advisory commission rate applied to a referred deposit"
    )
    referral_code_max_attempts: int = Field(
        default=REFERRAL_CODE_MAX_ATTEMPTS,
        gt=0,
        description="Collision retries before code generation gives up"
    )

    # Aggregation
    aggregation_row_cap: int = Field(
        default=AGGREGATION_ROW_CAP,
        gt=0,
        description="Signup count above which recompute-from-source is flagged"
    )

    # Storage retry policy (StorageUnavailable only)
    storage_retry_attempts: int = Field(
        default=STORAGE_RETRY_ATTEMPTS, ge=1, le=10
    )
    storage_retry_base_delay: float = Field(
        default=STORAGE_RETRY_BASE_DELAY_SECONDS, ge=0
    )
    storage_retry_max_delay: float = Field(
        default=STORAGE_RETRY_MAX_DELAY_SECONDS, ge=0
    )

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8080, ge=1, le=65535)

    # Job scheduler health endpoint
    scheduler_health_host: str = "0.0.0.0"
    scheduler_health_port: int = Field(default=8081, ge=1, le=65535)

    # Application
    environment: str = "production"
    log_level: str = "INFO"
    log_file: str = "logs/referral_ledger.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("referral_commission_rate")
    @classmethod
    def validate_commission_rate(cls, v: Decimal) -> Decimal:
        """Commission rate must be a fraction in (0, 1]."""
        if v <= 0 or v > 1:
            raise ValueError(
                f"Invalid REFERRAL_COMMISSION_RATE: {v}. "
                "Expected a fraction such as 0.05"
            )
        return v

    @field_validator("referral_base_url")
    @classmethod
    def normalize_base_url(cls, v: str) -> str:
        """Strip trailing slashes so links never contain '//signup'."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid REFERRAL_BASE_URL: {v}. Must start with http:// or https://"
            )
        return v

    @model_validator(mode="after")
    def validate_retry_delays(self) -> "Settings":
        """Backoff cap cannot be below the base delay."""
        if self.storage_retry_max_delay < self.storage_retry_base_delay:
            logger.warning(
                "STORAGE_RETRY_MAX_DELAY is below STORAGE_RETRY_BASE_DELAY, "
                "using the base delay as the cap"
            )
            self.storage_retry_max_delay = self.storage_retry_base_delay
        return self

    @property
    def is_sqlite(self) -> bool:
        """True when the ledger runs on SQLite (tests, local runs)."""
        return self.database_url.startswith("sqlite")


settings = Settings()
