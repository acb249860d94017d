"""Unit tests for CSV export formatting."""

import csv
import io
from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace

from referral_ledger.services.referral.export import (
    PAYMENT_COLUMNS,
    REFERRAL_COLUMNS,
    export_filename,
    format_cell,
    payments_to_csv,
    referrals_to_csv,
    signups_to_csv,
)

CREATED = datetime(2026, 2, 1, 9, 30, tzinfo=UTC)


def parse(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


class TestFormatCell:
    """Tests for format_cell."""

    def test_none_is_empty(self):
        assert format_cell(None) == ""

    def test_bool_is_yes_no(self):
        assert format_cell(True) == "Yes"
        assert format_cell(False) == "No"

    def test_decimal_keeps_cents(self):
        assert format_cell(Decimal("75")) == "75.00"

    def test_datetime_iso(self):
        assert format_cell(CREATED) == "2026-02-01T09:30:00+00:00"


class TestReferralsToCsv:
    """Tests for referrals_to_csv."""

    def test_header_and_row(self):
        """Header row followed by one row per referral, link rendered."""
        referral = SimpleNamespace(
            id=1,
            user_id="user-1",
            referral_code="ANNA1234",
            status="earning",
            is_active=True,
            total_referrals=2,
            total_earnings=Decimal("75.00"),
            year_to_date_earnings=Decimal("25.00"),
            initial_deposit=Decimal("1000.00"),
            deposit_date=CREATED,
            created_at=CREATED,
            updated_at=CREATED,
        )

        rows = parse(referrals_to_csv([referral], "https://example.com"))

        assert rows[0] == list(REFERRAL_COLUMNS)
        assert rows[1][:8] == [
            "1",
            "user-1",
            "ANNA1234",
            "https://example.com/signup?ref=ANNA1234",
            "earning",
            "Yes",
            "2",
            "75.00",
        ]

    def test_empty_export_has_header(self):
        """No referrals still yields a header row."""
        assert parse(referrals_to_csv([], "https://example.com")) == [list(REFERRAL_COLUMNS)]


class TestPaymentsAndSignups:
    """Tests for payments_to_csv and signups_to_csv."""

    def test_notes_with_commas_are_quoted(self):
        """Free-text notes survive a round trip through a CSV reader."""
        payment = SimpleNamespace(
            id=5,
            referral_id=1,
            amount=Decimal("-10.00"),
            payment_date=CREATED,
            notes='Correction, see "ticket 12"',
            recorded_by="admin",
            created_at=CREATED,
        )

        rows = parse(payments_to_csv([payment]))

        assert rows[0] == list(PAYMENT_COLUMNS)
        assert rows[1][2] == "-10.00"
        assert rows[1][4] == 'Correction, see "ticket 12"'

    def test_signup_without_deposit(self):
        """Missing deposit renders as empty cells."""
        signup = SimpleNamespace(
            id=3,
            referral_id=1,
            referred_user_id="user-2",
            signup_date=CREATED,
            deposit_amount=None,
            deposit_date=None,
            created_at=CREATED,
        )

        rows = parse(signups_to_csv([signup]))

        assert rows[1][4] == ""
        assert rows[1][5] == ""


def test_export_filename():
    """Filename carries the export kind and date."""
    assert export_filename("payments", CREATED) == "payments_2026-02-01.csv"
