"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets, connection strings, exchange rates
or limits in code.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env file into environment variables
load_dotenv()


def _env_decimal(name: str, default: str) -> Decimal:
    return Decimal(os.getenv(name, default))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class LedgerConfig(BaseModel):
    """
    Business knobs of the ledger.

    Services receive this object explicitly instead of reading
    module constants, so tests can build one with different
    rates or limits and a reload picks up new values.
    """

    model_config = {"frozen": True}

    # Exchange rates (fixed lookup table, not market data)
    usd_to_khr_rate: Decimal = Decimal("4100")
    khr_to_usd_rate: Decimal = Decimal("0.000244")

    # Daily outgoing cap for Saving accounts, per currency.
    # The KHR value is configured, not derived from the rate.
    daily_limit_usd: Decimal = Decimal("5000")
    daily_limit_khr: Decimal = Decimal("20500000")

    # Minimum opening deposit, per currency
    min_deposit_usd: Decimal = Decimal("5.00")
    min_deposit_khr: Decimal = Decimal("20000")

    # Account-opening quotas per owner
    quota_saving_per_currency: int = Field(default=1, ge=0)
    quota_checking: int = Field(default=1, ge=0)
    quota_fixed: int = Field(default=1, ge=0)

    fixed_max_term_years: int = Field(default=10, ge=1)

    account_number_max_attempts: int = Field(default=1000, ge=1)
    account_number_seed: int | None = None

    max_conflict_retries: int = Field(default=3, ge=0)
    operation_timeout_seconds: float | None = None

    journal_failed_attempts: bool = True

    def daily_limit(self, currency: str) -> Decimal:
        return self.daily_limit_usd if currency == "USD" else self.daily_limit_khr

    def minimum_deposit(self, currency: str) -> Decimal:
        return self.min_deposit_usd if currency == "USD" else self.min_deposit_khr


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        # Application
        self.APP_NAME: str = "Retail Ledger Engine"
        self.APP_VERSION: str = "0.1.0"
        self.DEBUG: bool = _env_bool("DEBUG", "false")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

        # Server
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "8000"))

        # Database
        self.DATABASE_URL: str = os.getenv(
            "DATABASE_URL",
            "postgresql://localhost:5432/retail_ledger"
        )

        # Environment
        self.ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

        # Ledger
        self.RATE_USD_TO_KHR = _env_decimal("RATE_USD_TO_KHR", "4100")
        self.RATE_KHR_TO_USD = _env_decimal("RATE_KHR_TO_USD", "0.000244")
        self.DAILY_LIMIT_USD = _env_decimal("DAILY_LIMIT_USD", "5000")
        self.DAILY_LIMIT_KHR = _env_decimal("DAILY_LIMIT_KHR", "20500000")
        self.MIN_DEPOSIT_USD = _env_decimal("MIN_DEPOSIT_USD", "5.00")
        self.MIN_DEPOSIT_KHR = _env_decimal("MIN_DEPOSIT_KHR", "20000")
        self.ACCOUNT_QUOTA_SAVING_PER_CURRENCY = int(
            os.getenv("ACCOUNT_QUOTA_SAVING_PER_CURRENCY", "1")
        )
        self.ACCOUNT_QUOTA_CHECKING = int(os.getenv("ACCOUNT_QUOTA_CHECKING", "1"))
        self.ACCOUNT_QUOTA_FIXED = int(os.getenv("ACCOUNT_QUOTA_FIXED", "1"))
        self.FIXED_MAX_TERM_YEARS = int(os.getenv("FIXED_MAX_TERM_YEARS", "10"))
        self.ACCOUNT_NUMBER_MAX_ATTEMPTS = int(
            os.getenv("ACCOUNT_NUMBER_MAX_ATTEMPTS", "1000")
        )
        seed = os.getenv("ACCOUNT_NUMBER_SEED")
        self.ACCOUNT_NUMBER_SEED: int | None = int(seed) if seed else None
        self.MAX_CONFLICT_RETRIES = int(os.getenv("MAX_CONFLICT_RETRIES", "3"))
        timeout = float(os.getenv("OPERATION_TIMEOUT_SECONDS", "0"))
        self.OPERATION_TIMEOUT_SECONDS: float | None = timeout or None
        self.JOURNAL_FAILED_ATTEMPTS = _env_bool("JOURNAL_FAILED_ATTEMPTS", "true")

    def ledger_config(self) -> LedgerConfig:
        """Collect the ledger knobs into an immutable LedgerConfig."""
        return LedgerConfig(
            usd_to_khr_rate=self.RATE_USD_TO_KHR,
            khr_to_usd_rate=self.RATE_KHR_TO_USD,
            daily_limit_usd=self.DAILY_LIMIT_USD,
            daily_limit_khr=self.DAILY_LIMIT_KHR,
            min_deposit_usd=self.MIN_DEPOSIT_USD,
            min_deposit_khr=self.MIN_DEPOSIT_KHR,
            quota_saving_per_currency=self.ACCOUNT_QUOTA_SAVING_PER_CURRENCY,
            quota_checking=self.ACCOUNT_QUOTA_CHECKING,
            quota_fixed=self.ACCOUNT_QUOTA_FIXED,
            fixed_max_term_years=self.FIXED_MAX_TERM_YEARS,
            account_number_max_attempts=self.ACCOUNT_NUMBER_MAX_ATTEMPTS,
            account_number_seed=self.ACCOUNT_NUMBER_SEED,
            max_conflict_retries=self.MAX_CONFLICT_RETRIES,
            operation_timeout_seconds=self.OPERATION_TIMEOUT_SECONDS,
            journal_failed_attempts=self.JOURNAL_FAILED_ATTEMPTS,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls. This avoids reading
    environment variables repeatedly.
    """
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and read the environment again."""
    get_settings.cache_clear()
    return get_settings()
