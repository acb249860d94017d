"""
ReferralAuditEntry model.

Immutable record of every administrator-triggered ledger mutation. This is
the trail used to reconstruct how an aggregate reached its current value.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_ledger.models.base import Base
from referral_ledger.models.types import JSONType


if TYPE_CHECKING:
    from referral_ledger.models.referral import Referral


class ReferralAuditEntry(Base):
    """
    Audit entry.

    Attributes:
        id: Primary key
        referral_id: Referral the mutation touched
        actor: Acting administrator
        action: AuditAction value
        before: Snapshot of the affected fields before the mutation
        after: Snapshot after the mutation
        reason: Free-text justification supplied by the administrator
        created_at: When the mutation was committed
    """

    __tablename__ = "referral_audit_entries"
    __table_args__ = (
        Index("ix_referral_audit_entries_referral_created", "referral_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    referral_id: Mapped[int] = mapped_column(
        ForeignKey("referrals.id", ondelete="RESTRICT"), nullable=False
    )
    actor: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False)

    before: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    after: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    referral: Mapped["Referral"] = relationship(
        "Referral", back_populates="audit_entries", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralAuditEntry(id={self.id}, referral_id={self.referral_id}, "
            f"actor={self.actor}, action={self.action})>"
        )
