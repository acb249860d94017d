"""
Repositories package.

Data access layer (the referral store).
"""

from referral_ledger.repositories.referral_audit_repository import ReferralAuditRepository
from referral_ledger.repositories.referral_payment_repository import ReferralPaymentRepository
from referral_ledger.repositories.referral_repository import (
    ReferralCodeTaken,
    ReferralRepository,
)
from referral_ledger.repositories.referral_signup_repository import ReferralSignupRepository

__all__ = [
    "ReferralRepository",
    "ReferralCodeTaken",
    "ReferralSignupRepository",
    "ReferralPaymentRepository",
    "ReferralAuditRepository",
]
