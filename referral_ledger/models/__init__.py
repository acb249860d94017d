"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from referral_ledger.models.base import Base
from referral_ledger.models.enums import AuditAction, ReferralStatus
from referral_ledger.models.referral import Referral
from referral_ledger.models.referral_audit_entry import ReferralAuditEntry
from referral_ledger.models.referral_payment import ReferralPayment
from referral_ledger.models.referral_signup import ReferralSignup

__all__ = [
    # Base
    "Base",
    # Enums
    "ReferralStatus",
    "AuditAction",
    # Ledger
    "Referral",
    "ReferralSignup",
    "ReferralPayment",
    "ReferralAuditEntry",
]
