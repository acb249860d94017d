"""
Services.

Business logic layer.
"""

from referral_ledger.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)
from referral_ledger.services.ledger_service import ReferralLedgerService


__all__ = [
    "BaseService",
    "log_operation",
    "transaction",
    "ReferralLedgerService",
]
