"""Unit tests for ledger input validation."""

from datetime import UTC, date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from referral_ledger.utils.exceptions import InvalidAmount, MissingActor
from referral_ledger.validators import (
    normalize_referral_code,
    parse_event_date,
    parse_money,
    require_actor,
    validate_amount,
    validate_referral_code,
    validate_user_id,
)


class TestValidateAmount:
    """Tests for validate_amount."""

    def test_valid_string(self):
        """Decimal strings are parsed and quantized to cents."""
        assert validate_amount("100.5") == (True, Decimal("100.50"), None)

    def test_comma_separator(self):
        """A decimal comma is accepted."""
        is_valid, value, _ = validate_amount("12,34")
        assert is_valid and value == Decimal("12.34")

    def test_float_rejected(self):
        """Floats cannot represent money exactly."""
        is_valid, value, error = validate_amount(10.5)
        assert not is_valid and value is None
        assert "float" in error

    def test_three_decimals_rejected(self):
        """Fractions of a cent are rejected, not rounded."""
        is_valid, _, error = validate_amount("1.005")
        assert not is_valid
        assert "2 decimal places" in error

    @pytest.mark.parametrize("amount", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_rejected(self, amount):
        """NaN and infinities are rejected."""
        assert validate_amount(amount)[0] is False

    @pytest.mark.parametrize("amount", ["", "abc", "1.2.3"])
    def test_garbage_rejected(self, amount):
        """Unparseable input is rejected."""
        assert validate_amount(amount)[0] is False

    def test_zero_rejected_by_default(self):
        """Zero is not a meaningful deposit or payment."""
        assert validate_amount("0")[0] is False
        assert validate_amount("0", allow_zero=True)[0] is True

    def test_negative_needs_permission(self):
        """Negative amounts are only valid for corrections."""
        assert validate_amount("-10")[0] is False
        assert validate_amount("-10", allow_negative=True) == (True, Decimal("-10.00"), None)

    def test_too_large_rejected(self):
        """Amounts beyond NUMERIC(18, 2) are rejected."""
        assert validate_amount("10000000000000000.00")[0] is False


class TestParseMoney:
    """Tests for parse_money."""

    def test_returns_decimal(self):
        """Valid input returns a quantized Decimal."""
        assert parse_money(50) == Decimal("50.00")

    def test_raises_invalid_amount(self):
        """Invalid input raises InvalidAmount with the reason."""
        with pytest.raises(InvalidAmount, match="decimal places"):
            parse_money("0.001")


class TestUserIdAndCode:
    """Tests for user ID and referral code validation."""

    def test_user_id_stripped(self):
        """Surrounding whitespace is removed."""
        assert validate_user_id("  user-1 ") == (True, "user-1", None)

    @pytest.mark.parametrize("value", ["", "   ", "x" * 65])
    def test_user_id_invalid(self, value):
        """Empty and overlong IDs are invalid."""
        assert validate_user_id(value)[0] is False

    def test_code_normalized_to_upper_case(self):
        """Codes are case-insensitive on input."""
        assert normalize_referral_code(" anna1234 ") == "ANNA1234"
        assert validate_referral_code("anna1234") == (True, "ANNA1234", None)

    @pytest.mark.parametrize("code", ["", "ABC", "ANNA-1234", "A" * 17])
    def test_code_invalid(self, code):
        """Codes outside [A-Z0-9]{6,16} are invalid."""
        assert validate_referral_code(code)[0] is False


class TestParseEventDate:
    """Tests for parse_event_date."""

    def test_default_used_for_none(self):
        """Missing date falls back to the default."""
        default = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
        assert parse_event_date(None, default) == default

    def test_bare_date_is_midnight_utc(self):
        """A date without time means midnight UTC."""
        result = parse_event_date(date(2026, 3, 1), datetime.now(UTC))
        assert result == datetime(2026, 3, 1, tzinfo=UTC)

    def test_iso_date_string(self):
        """YYYY-MM-DD strings are dates."""
        assert parse_event_date("2026-03-01", datetime.now(UTC)) == datetime(
            2026, 3, 1, tzinfo=UTC
        )

    def test_offset_converted_to_utc(self):
        """Aware datetimes are converted to UTC."""
        local = datetime(2026, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=3)))
        result = parse_event_date(local, datetime.now(UTC))
        assert result == datetime(2025, 12, 31, 22, 0, tzinfo=UTC)
        assert result.year == 2025

    def test_zulu_suffix(self):
        """Trailing Z is accepted."""
        assert parse_event_date("2026-03-01T10:00:00Z", datetime.now(UTC)) == datetime(
            2026, 3, 1, 10, 0, tzinfo=UTC
        )

    def test_garbage_raises_value_error(self):
        """Unparseable strings raise ValueError."""
        with pytest.raises(ValueError):
            parse_event_date("yesterday", datetime.now(UTC))


class TestRequireActor:
    """Tests for require_actor."""

    def test_returns_stripped_actor(self):
        """Actor is trimmed."""
        assert require_actor(" admin ") == "admin"

    @pytest.mark.parametrize("actor", [None, "", "   "])
    def test_missing_actor(self, actor):
        """Administrative mutations must name the actor."""
        with pytest.raises(MissingActor):
            require_actor(actor)
