"""
ReferralPayment repository.

Data access layer for the append-only ReferralPayment ledger.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.referral_payment import ReferralPayment
from referral_ledger.repositories.base import BaseRepository
from referral_ledger.utils.exceptions import NotFound


class ReferralPaymentRepository(BaseRepository[ReferralPayment]):
    """ReferralPayment repository. Append and read only."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral payment repository."""
        super().__init__(ReferralPayment, session)

    async def create(
        self,
        referral_id: int,
        amount: Decimal,
        payment_date: datetime,
        notes: str | None,
        recorded_by: str,
    ) -> ReferralPayment:
        """
        Append a commission payment.

        Args:
            referral_id: Referral ID (must exist)
            amount: Signed amount (negative for corrections)
            payment_date: Payment timestamp (UTC)
            notes: Administrator notes
            recorded_by: Acting administrator

        Returns:
            Created payment

        Raises:
            NotFound: Referral does not exist
        """
        try:
            return await self.add(
                referral_id=referral_id,
                amount=amount,
                payment_date=payment_date,
                notes=notes,
                recorded_by=recorded_by,
            )
        except IntegrityError as e:
            if "foreign key" in str(e.orig).lower():
                raise NotFound(f"Referral {referral_id} not found") from e
            raise

    async def list_for_referral(self, referral_id: int) -> list[ReferralPayment]:
        """
        Get payments of a referral, newest first.

        Args:
            referral_id: Referral ID

        Returns:
            List of payments
        """
        stmt = (
            select(ReferralPayment)
            .where(ReferralPayment.referral_id == referral_id)
            .order_by(ReferralPayment.payment_date.desc(), ReferralPayment.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> list[ReferralPayment]:
        """Get every payment, newest first (admin export)."""
        stmt = select(ReferralPayment).order_by(
            ReferralPayment.payment_date.desc(), ReferralPayment.id.desc()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_for_referral(
        self,
        referral_id: int,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> Decimal:
        """
        Sum payment amounts of a referral, optionally within [since, until).

        Args:
            referral_id: Referral ID
            since: Inclusive lower bound on payment_date
            until: Exclusive upper bound on payment_date

        Returns:
            Sum of amounts (0 when there are none)
        """
        stmt = select(func.coalesce(func.sum(ReferralPayment.amount), 0)).where(
            ReferralPayment.referral_id == referral_id
        )
        if since is not None:
            stmt = stmt.where(ReferralPayment.payment_date >= since)
        if until is not None:
            stmt = stmt.where(ReferralPayment.payment_date < until)

        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
