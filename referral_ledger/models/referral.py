"""
Referral model.

One referral program enrollment per user: the code, its lifecycle status,
the suspension flag and the aggregates derived from signups and payments.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_ledger.models.base import Base
from referral_ledger.models.enums import ReferralStatus
from referral_ledger.models.types import MoneyType


if TYPE_CHECKING:
    from referral_ledger.models.referral_audit_entry import ReferralAuditEntry
    from referral_ledger.models.referral_payment import ReferralPayment
    from referral_ledger.models.referral_signup import ReferralSignup


class Referral(Base):
    """
    Referral entity.

    Attributes:
        id: Primary key
        user_id: Owning user (unique, at most one referral per user)
        referral_code: Shareable code (unique, immutable)
        status: pending -> deposited -> earning -> completed
        is_active: Administrator suspension flag, orthogonal to status
        total_referrals: Number of signups (derived)
        total_earnings: Sum of payments (derived)
        year_to_date_earnings: Sum of payments dated in ytd_year (derived)
        ytd_year: Calendar year the stored year_to_date_earnings belongs to
        initial_deposit: First deposit reported by a referred user
        deposit_date: Date of that first deposit
    """

    __tablename__ = "referrals"
    __table_args__ = (
        UniqueConstraint("user_id"),
        UniqueConstraint("referral_code"),
        CheckConstraint(
            "status IN ('pending', 'deposited', 'earning', 'completed')",
            name="status_valid",
        ),
        CheckConstraint("total_referrals >= 0", name="total_referrals_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    referral_code: Mapped[str] = mapped_column(String(16), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReferralStatus.PENDING.value, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Aggregates, rewritten by the aggregation engine on every child write
    total_referrals: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    year_to_date_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    ytd_year: Mapped[int] = mapped_column(
        Integer, nullable=False, default=lambda: datetime.now(UTC).year
    )

    # Set once from the first signup that records a deposit
    initial_deposit: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)
    deposit_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    signups: Mapped[list["ReferralSignup"]] = relationship(
        "ReferralSignup", back_populates="referral", lazy="raise"
    )
    payments: Mapped[list["ReferralPayment"]] = relationship(
        "ReferralPayment", back_populates="referral", lazy="raise"
    )
    audit_entries: Mapped[list["ReferralAuditEntry"]] = relationship(
        "ReferralAuditEntry", back_populates="referral", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Referral(id={self.id}, user_id={self.user_id}, "
            f"code={self.referral_code}, status={self.status}, "
            f"is_active={self.is_active})>"
        )
