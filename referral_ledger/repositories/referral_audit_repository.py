"""
ReferralAuditEntry repository.

Append-only access to the administrator audit trail.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.enums import AuditAction
from referral_ledger.models.referral_audit_entry import ReferralAuditEntry
from referral_ledger.repositories.base import BaseRepository


class ReferralAuditRepository(BaseRepository[ReferralAuditEntry]):
    """Audit trail repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize audit repository."""
        super().__init__(ReferralAuditEntry, session)

    async def record(
        self,
        referral_id: int,
        actor: str,
        action: AuditAction,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
        reason: str | None = None,
    ) -> ReferralAuditEntry:
        """
        Append an audit entry in the current transaction.

        Args:
            referral_id: Referral the mutation touched
            actor: Acting administrator
            action: Kind of mutation
            before: Snapshot before the mutation
            after: Snapshot after the mutation
            reason: Administrator's justification

        Returns:
            Created audit entry
        """
        return await self.add(
            referral_id=referral_id,
            actor=actor,
            action=action.value,
            before=before,
            after=after,
            reason=reason,
        )

    async def list_for_referral(self, referral_id: int) -> list[ReferralAuditEntry]:
        """Get audit entries of a referral, newest first."""
        stmt = (
            select(ReferralAuditEntry)
            .where(ReferralAuditEntry.referral_id == referral_id)
            .order_by(ReferralAuditEntry.created_at.desc(), ReferralAuditEntry.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
