"""
Common validators for ledger input.

Each validate_* function returns a tuple of (is_valid, parsed_value, error_message).
The parse_* / require_* helpers raise the matching LedgerError instead and
are what the service layer uses.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from referral_ledger.config.constants import MONEY_QUANTUM
from referral_ledger.utils.datetime_utils import to_utc
from referral_ledger.utils.exceptions import InvalidAmount, MissingActor

# Upper bound of NUMERIC(18, 2)
MAX_MONEY_ABS = Decimal("9999999999999999.99")

USER_ID_MAX_LENGTH = 64
REFERRAL_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6,16}$")


def validate_amount(
    amount: str | int | Decimal,
    allow_negative: bool = False,
    allow_zero: bool = False,
) -> tuple[bool, Decimal | None, str | None]:
    """
    Validate a monetary amount.

    Args:
        amount: Amount as string, int or Decimal (floats are rejected)
        allow_negative: Accept amounts below zero (payment corrections)
        allow_zero: Accept exactly zero

    Returns:
        Tuple of (is_valid, parsed_value, error_message)

    Examples:
        >>> validate_amount("100.50")
        (True, Decimal('100.50'), None)
        >>> validate_amount("-10")
        (False, None, 'Amount must be > 0')
    """
    if isinstance(amount, bool) or isinstance(amount, float):
        return False, None, "Amount must be a decimal string, not a float"

    if isinstance(amount, str):
        amount = amount.strip().replace(",", ".")
        if not amount:
            return False, None, "Amount is empty"

    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        return False, None, "Invalid amount format"

    if not value.is_finite():
        return False, None, "Amount must be a finite number"

    if abs(value) > MAX_MONEY_ABS:
        return False, None, "Amount is too large"

    if value != value.quantize(MONEY_QUANTUM):
        return False, None, "Amount must have at most 2 decimal places"

    if value == 0 and not allow_zero:
        return False, None, "Amount must not be zero"

    if value < 0 and not allow_negative:
        return False, None, "Amount must be > 0"

    return True, value.quantize(MONEY_QUANTUM), None


def validate_user_id(value: str) -> tuple[bool, str | None, str | None]:
    """
    Validate an opaque user identifier.

    Args:
        value: User ID supplied by the caller

    Returns:
        Tuple of (is_valid, normalized_user_id, error_message)
    """
    if not isinstance(value, str) or not value.strip():
        return False, None, "User ID is empty"

    value = value.strip()
    if len(value) > USER_ID_MAX_LENGTH:
        return False, None, f"User ID must be at most {USER_ID_MAX_LENGTH} characters"

    return True, value, None


def normalize_referral_code(code: str) -> str:
    """Codes are case-insensitive on input and stored upper-case."""
    return (code or "").strip().upper()


def validate_referral_code(code: str) -> tuple[bool, str | None, str | None]:
    """
    Validate referral code format.

    Args:
        code: Code from a signup link

    Returns:
        Tuple of (is_valid, normalized_code, error_message)
    """
    normalized = normalize_referral_code(code)
    if not REFERRAL_CODE_PATTERN.match(normalized):
        return False, None, "Referral code must be 6-16 letters or digits"
    return True, normalized, None


def parse_money(
    amount: str | int | Decimal,
    allow_negative: bool = False,
) -> Decimal:
    """
    Parse and validate a monetary amount.

    Raises:
        InvalidAmount: If the amount is not acceptable
    """
    is_valid, value, error = validate_amount(amount, allow_negative=allow_negative)
    if not is_valid or value is None:
        raise InvalidAmount(error)
    return value


def parse_event_date(value: date | datetime | str | None, default: datetime) -> datetime:
    """
    Parse an event date (deposit/payment) into an aware UTC datetime.

    Args:
        value: Date, datetime, ISO-8601 string or None
        default: Value used when none is given

    Returns:
        Aware UTC datetime

    Raises:
        ValueError: If a string cannot be parsed
    """
    if value is None:
        return to_utc(default)
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return to_utc(date.fromisoformat(text))
        return to_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    return to_utc(value)


def require_actor(actor: str | None) -> str:
    """
    Ensure an administrative mutation names its actor.

    Raises:
        MissingActor: If actor is empty
    """
    if not actor or not actor.strip():
        raise MissingActor()
    return actor.strip()[:USER_ID_MAX_LENGTH]
