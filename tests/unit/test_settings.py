"""Unit tests for settings validation."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from referral_ledger.config.database import make_async_db_url
from referral_ledger.config.settings import Settings


class TestSettings:
    """Tests for Settings validators."""

    def test_base_url_trailing_slash_stripped(self):
        """Base URL is normalized."""
        settings = Settings(database_url="sqlite://", referral_base_url="https://example.com/")
        assert settings.referral_base_url == "https://example.com"

    def test_base_url_must_be_http(self):
        """Non-http base URLs are rejected."""
        with pytest.raises(ValidationError):
            Settings(database_url="sqlite://", referral_base_url="example.com")

    @pytest.mark.parametrize("rate", ["0", "-0.05", "1.5"])
    def test_commission_rate_bounds(self, rate):
        """Commission rate must be a fraction in (0, 1]."""
        with pytest.raises(ValidationError):
            Settings(database_url="sqlite://", referral_commission_rate=rate)

    def test_commission_rate_is_decimal(self):
        """Rate is parsed as Decimal, never float."""
        settings = Settings(database_url="sqlite://", referral_commission_rate="0.07")
        assert settings.referral_commission_rate == Decimal("0.07")

    def test_retry_cap_raised_to_base(self):
        """A cap below the base delay is lifted to the base delay."""
        settings = Settings(
            database_url="sqlite://",
            storage_retry_base_delay=2.0,
            storage_retry_max_delay=0.5,
        )
        assert settings.storage_retry_max_delay == 2.0


class TestMakeAsyncDbUrl:
    """Tests for make_async_db_url."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("postgres://u:p@db/ledger", "postgresql+asyncpg://u:p@db/ledger"),
            ("postgresql://u:p@db/ledger", "postgresql+asyncpg://u:p@db/ledger"),
            ("postgresql+asyncpg://u:p@db/ledger", "postgresql+asyncpg://u:p@db/ledger"),
            ("sqlite:///ledger.db", "sqlite+aiosqlite:///ledger.db"),
        ],
    )
    def test_converts_to_async_driver(self, url, expected):
        assert make_async_db_url(url) == expected

    def test_unsupported_scheme(self):
        with pytest.raises(RuntimeError):
            make_async_db_url("mysql://u:p@db/ledger")
