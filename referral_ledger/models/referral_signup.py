"""
ReferralSignup model.

A user who registered through a referral code. Deposit fields are
write-once, filled when the trading platform reports a qualifying deposit.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_ledger.models.base import Base
from referral_ledger.models.types import MoneyType


if TYPE_CHECKING:
    from referral_ledger.models.referral import Referral


class ReferralSignup(Base):
    """Referred user attributed to exactly one referral, system-wide."""

    __tablename__ = "referral_signups"
    __table_args__ = (
        # A user can be referred at most once, globally
        UniqueConstraint("referred_user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    referral_id: Mapped[int] = mapped_column(
        ForeignKey("referrals.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    referred_user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    signup_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    deposit_amount: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)
    deposit_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    referral: Mapped["Referral"] = relationship(
        "Referral", back_populates="signups", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralSignup(id={self.id}, referral_id={self.referral_id}, "
            f"referred_user_id={self.referred_user_id}, "
            f"deposit_amount={self.deposit_amount})>"
        )
