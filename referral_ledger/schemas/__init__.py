"""
Schemas package.

Pydantic read models and request bodies.
"""

from referral_ledger.schemas.referral import (
    AuditEntryView,
    CompleteProgramRequest,
    DepositRequest,
    GenerateLinkRequest,
    PaymentRequest,
    PaymentView,
    ProgramStats,
    ReferralLink,
    ReferralSummary,
    ReferralView,
    SetActiveRequest,
    SignupRequest,
    SignupView,
    StatusOverrideRequest,
    TopEarner,
)

__all__ = [
    "AuditEntryView",
    "PaymentView",
    "ProgramStats",
    "ReferralLink",
    "ReferralSummary",
    "ReferralView",
    "SignupView",
    "TopEarner",
    "GenerateLinkRequest",
    "SignupRequest",
    "DepositRequest",
    "PaymentRequest",
    "SetActiveRequest",
    "CompleteProgramRequest",
    "StatusOverrideRequest",
]
