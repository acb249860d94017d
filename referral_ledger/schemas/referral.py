"""
Ledger read models and request bodies.

Pydantic models returned by the ledger service and accepted by the HTTP
surface. Decimals serialize as strings in JSON mode.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from referral_ledger.models.enums import ReferralStatus
from referral_ledger.utils.datetime_utils import to_utc


class LedgerSchema(BaseModel):
    """Base for read models built from ORM rows."""

    model_config = ConfigDict(from_attributes=True)

    @field_validator("*", mode="after")
    @classmethod
    def ensure_utc(cls, v: Any) -> Any:
        """Some dialects hand back naive datetimes; they are UTC."""
        if isinstance(v, datetime):
            return to_utc(v)
        return v


class ReferralLink(LedgerSchema):
    """Result of generate_link."""

    referral_id: int
    code: str
    link: str


class ReferralView(LedgerSchema):
    """Referral as shown to its owner and to admins."""

    id: int
    user_id: str
    referral_code: str
    referral_link: str
    status: ReferralStatus
    is_active: bool
    total_referrals: int
    total_earnings: Decimal
    year_to_date_earnings: Decimal
    initial_deposit: Decimal | None = None
    deposit_date: datetime | None = None
    created_at: datetime
    updated_at: datetime


class SignupView(LedgerSchema):
    """Referred user, with the advisory commission on their deposit."""

    id: int
    referral_id: int
    referred_user_id: str
    signup_date: datetime
    deposit_amount: Decimal | None = None
    deposit_date: datetime | None = None
    commission: Decimal | None = None


class PaymentView(LedgerSchema):
    """Recorded commission payment."""

    id: int
    referral_id: int
    amount: Decimal
    payment_date: datetime
    notes: str | None = None
    recorded_by: str
    created_at: datetime


class ReferralSummary(LedgerSchema):
    """Everything a user sees about their referral program."""

    referral: ReferralView
    link: str
    signups: list[SignupView]
    payments: list[PaymentView]


class TopEarner(LedgerSchema):
    """Highest-earning referral."""

    referral_id: int
    user_id: str
    referral_code: str
    total_earnings: Decimal


class ProgramStats(LedgerSchema):
    """Program-wide counters for the admin dashboard."""

    total_referrals: int
    total_earnings: Decimal
    active_referrals: int
    pending_referrals: int
    total_signups: int
    total_deposits: Decimal
    top_earner: TopEarner | None = None


class AuditEntryView(LedgerSchema):
    """One administrator action from the audit trail."""

    id: int
    referral_id: int
    actor: str
    action: str
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    reason: str | None = None
    created_at: datetime


# Request bodies

class GenerateLinkRequest(BaseModel):
    user_id: str
    seed: str | None = None


class SignupRequest(BaseModel):
    code: str
    referred_user_id: str


class DepositRequest(BaseModel):
    amount: Decimal | str | int
    date: str | None = None


class PaymentRequest(BaseModel):
    amount: Decimal | str | int
    date: str | None = None
    notes: str | None = Field(default=None, max_length=2000)


class SetActiveRequest(BaseModel):
    is_active: bool
    reason: str | None = None


class CompleteProgramRequest(BaseModel):
    reason: str | None = None


class StatusOverrideRequest(BaseModel):
    status: ReferralStatus
    reason: str = Field(min_length=1)
