"""Unit tests for the advisory commission policy."""

from decimal import Decimal

import pytest

from referral_ledger.services.referral.commission import (
    commission_for_deposit,
    quantize_money,
)


class TestCommissionForDeposit:
    """Tests for commission_for_deposit."""

    def test_default_rate_is_five_percent(self):
        """1000.00 deposit should earn 50.00."""
        assert commission_for_deposit(Decimal("1000.00")) == Decimal("50.00")

    def test_result_has_two_decimal_places(self):
        """Commission is always expressed in cents."""
        result = commission_for_deposit(Decimal("333.33"))
        assert result == Decimal("16.67")
        assert result.as_tuple().exponent == -2

    @pytest.mark.parametrize(
        "deposit,expected",
        [
            (Decimal("0.10"), Decimal("0.01")),  # 0.005 rounds half up
            (Decimal("0.09"), Decimal("0.00")),  # 0.0045 rounds down
            (Decimal("10.10"), Decimal("0.51")),  # 0.505 rounds half up
            (Decimal("1.30"), Decimal("0.07")),  # 0.065 rounds half up
        ],
    )
    def test_rounds_half_up(self, deposit, expected):
        """Half-cent results round away from zero, not to even."""
        assert commission_for_deposit(deposit) == expected

    def test_custom_rate(self):
        """Rate can be overridden."""
        assert commission_for_deposit(Decimal("200.00"), Decimal("0.10")) == Decimal("20.00")

    def test_is_pure(self):
        """Same input, same output; the input is not modified."""
        deposit = Decimal("123.45")
        first = commission_for_deposit(deposit)
        second = commission_for_deposit(deposit)
        assert first == second == Decimal("6.17")
        assert deposit == Decimal("123.45")


class TestQuantizeMoney:
    """Tests for quantize_money."""

    def test_pads_to_cents(self):
        """Integers gain two decimal places."""
        assert str(quantize_money(Decimal("75"))) == "75.00"

    def test_negative_rounds_away_from_zero(self):
        """Corrections round symmetrically."""
        assert quantize_money(Decimal("-0.005")) == Decimal("-0.01")
