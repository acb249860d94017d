"""
ReferralPayment model.

Append-only ledger of commission disbursements. Corrections are new rows
with offsetting (possibly negative) amounts, never edits.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_ledger.models.base import Base
from referral_ledger.models.types import MoneyType


if TYPE_CHECKING:
    from referral_ledger.models.referral import Referral


class ReferralPayment(Base):
    """Commission payment recorded by an administrator."""

    __tablename__ = "referral_payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    referral_id: Mapped[int] = mapped_column(
        ForeignKey("referrals.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_by: Mapped[str] = mapped_column(String(64), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    referral: Mapped["Referral"] = relationship(
        "Referral", back_populates="payments", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralPayment(id={self.id}, referral_id={self.referral_id}, "
            f"amount={self.amount}, payment_date={self.payment_date})>"
        )
