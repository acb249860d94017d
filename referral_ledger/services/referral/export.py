"""
CSV export of ledger data for the admin back office.
"""

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from referral_ledger.models.referral import Referral
from referral_ledger.models.referral_payment import ReferralPayment
from referral_ledger.models.referral_signup import ReferralSignup
from referral_ledger.services.referral.code_generator import build_referral_link


REFERRAL_COLUMNS = (
    "Referral ID",
    "User ID",
    "Referral Code",
    "Referral Link",
    "Status",
    "Is Active",
    "Total Referrals",
    "Total Earnings",
    "Year to Date Earnings",
    "Initial Deposit",
    "Deposit Date",
    "Created At",
    "Updated At",
)

PAYMENT_COLUMNS = (
    "Payment ID",
    "Referral ID",
    "Amount",
    "Payment Date",
    "Notes",
    "Recorded By",
    "Created At",
)

SIGNUP_COLUMNS = (
    "Signup ID",
    "Referral ID",
    "Referred User ID",
    "Signup Date",
    "Deposit Amount",
    "Deposit Date",
    "Created At",
)

EXPORT_KINDS = ("referrals", "payments", "signups")


def format_cell(value: Any) -> str:
    """Render one CSV cell. Decimals keep their cents, datetimes go ISO-8601."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _write_csv(columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow([format_cell(value) for value in row])
    return buffer.getvalue()


def referrals_to_csv(referrals: Iterable[Referral], base_url: str) -> str:
    """
    Export referrals.

    Args:
        referrals: Referral entities
        base_url: Site origin used to render the link column

    Returns:
        CSV text with a header row
    """
    return _write_csv(
        REFERRAL_COLUMNS,
        (
            (
                r.id,
                r.user_id,
                r.referral_code,
                build_referral_link(base_url, r.referral_code),
                r.status,
                r.is_active,
                r.total_referrals,
                r.total_earnings,
                r.year_to_date_earnings,
                r.initial_deposit,
                r.deposit_date,
                r.created_at,
                r.updated_at,
            )
            for r in referrals
        ),
    )


def payments_to_csv(payments: Iterable[ReferralPayment]) -> str:
    """Export commission payments."""
    return _write_csv(
        PAYMENT_COLUMNS,
        (
            (p.id, p.referral_id, p.amount, p.payment_date, p.notes, p.recorded_by, p.created_at)
            for p in payments
        ),
    )


def signups_to_csv(signups: Iterable[ReferralSignup]) -> str:
    """Export referred-user signups."""
    return _write_csv(
        SIGNUP_COLUMNS,
        (
            (
                s.id,
                s.referral_id,
                s.referred_user_id,
                s.signup_date,
                s.deposit_amount,
                s.deposit_date,
                s.created_at,
            )
            for s in signups
        ),
    )


def export_filename(kind: str, now: datetime) -> str:
    """Download filename, e.g. referrals_2026-01-31.csv."""
    return f"{kind}_{now.date().isoformat()}.csv"


