"""
Datetime utilities.

Provides timezone-aware datetime functions. The ledger stores and compares
everything in UTC.
"""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def to_utc(value: date | datetime) -> datetime:
    """
    Normalize a date or datetime to an aware UTC datetime.

    A bare date means midnight UTC on that date; a naive datetime is
    assumed to already be UTC.

    Args:
        value: Date or datetime to normalize

    Returns:
        Aware datetime in UTC
    """
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """
    Get the half-open UTC interval covering a calendar year.

    Args:
        year: Calendar year

    Returns:
        Tuple of (start inclusive, end exclusive)
    """
    return (
        datetime(year, 1, 1, tzinfo=UTC),
        datetime(year + 1, 1, 1, tzinfo=UTC),
    )
