"""
Tests for settings loading and the ledger configuration.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from retail_ledger.config import LedgerConfig, Settings, get_settings, reload_settings


def test_defaults():
    config = Settings().ledger_config()
    assert config.usd_to_khr_rate == Decimal("4100")
    assert config.khr_to_usd_rate == Decimal("0.000244")
    assert config.daily_limit("USD") == Decimal("5000")
    assert config.daily_limit("KHR") == Decimal("20500000")
    assert config.minimum_deposit("KHR") == Decimal("20000")
    assert config.operation_timeout_seconds is None


def test_database_defaults_to_postgresql(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert Settings().DATABASE_URL == "postgresql://localhost:5432/retail_ledger"


def test_database_url_from_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./ledger.db")
    assert Settings().DATABASE_URL == "sqlite:///./ledger.db"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RATE_USD_TO_KHR", "4050")
    monkeypatch.setenv("DAILY_LIMIT_USD", "1000")
    monkeypatch.setenv("ACCOUNT_QUOTA_CHECKING", "3")
    monkeypatch.setenv("OPERATION_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("JOURNAL_FAILED_ATTEMPTS", "false")

    config = Settings().ledger_config()

    assert config.usd_to_khr_rate == Decimal("4050")
    assert config.daily_limit_usd == Decimal("1000")
    assert config.quota_checking == 3
    assert config.operation_timeout_seconds == 2.5
    assert config.journal_failed_attempts is False


def test_reload_picks_up_new_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    first = reload_settings()
    assert get_settings() is first
    assert first.LOG_LEVEL == "DEBUG"

    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    assert reload_settings().LOG_LEVEL == "WARNING"


def test_ledger_config_is_immutable():
    config = LedgerConfig()
    with pytest.raises(PydanticValidationError):
        config.daily_limit_usd = Decimal("1")


def test_negative_quota_rejected():
    with pytest.raises(PydanticValidationError):
        LedgerConfig(quota_fixed=-1)
