"""
Validators package.

Provides validation functions for ledger input.
"""

from referral_ledger.validators.common import (
    normalize_referral_code,
    parse_event_date,
    parse_money,
    require_actor,
    validate_amount,
    validate_referral_code,
    validate_user_id,
)


__all__ = [
    "validate_amount",
    "validate_user_id",
    "validate_referral_code",
    "normalize_referral_code",
    "parse_money",
    "parse_event_date",
    "require_actor",
]
