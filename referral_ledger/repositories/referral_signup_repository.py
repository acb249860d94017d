"""
ReferralSignup repository.

Data access layer for ReferralSignup model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.referral_signup import ReferralSignup
from referral_ledger.repositories.base import BaseRepository
from referral_ledger.utils.exceptions import AlreadySet, DuplicateSignup, NotFound


class ReferralSignupRepository(BaseRepository[ReferralSignup]):
    """ReferralSignup repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral signup repository."""
        super().__init__(ReferralSignup, session)

    async def create(
        self, referral_id: int, referred_user_id: str, signup_date: datetime
    ) -> ReferralSignup:
        """
        Attribute a referred user to a referral.

        Uniqueness of referred_user_id is enforced by the database
        constraint, so two concurrent attempts cannot both succeed.

        Args:
            referral_id: Owning referral ID (must exist)
            referred_user_id: Newly registered user
            signup_date: Registration timestamp (UTC)

        Returns:
            Created signup

        Raises:
            DuplicateSignup: User is already attributed to a referral
            NotFound: Referral does not exist
        """
        try:
            return await self.add(
                referral_id=referral_id,
                referred_user_id=referred_user_id,
                signup_date=signup_date,
            )
        except IntegrityError as e:
            message = str(e.orig)
            if "referred_user_id" in message:
                raise DuplicateSignup(
                    f"User {referred_user_id} has already been referred"
                ) from e
            if "foreign key" in message.lower():
                raise NotFound(f"Referral {referral_id} not found") from e
            raise

    async def set_deposit_once(
        self, signup_id: int, amount: Decimal, deposit_date: datetime
    ) -> ReferralSignup:
        """
        Record the qualifying deposit on a signup, exactly once.

        Implemented as a conditional UPDATE (compare-and-swap on
        deposit_amount IS NULL) so concurrent reports cannot both win.

        Args:
            signup_id: Signup ID
            amount: Deposit amount
            deposit_date: Deposit timestamp (UTC)

        Returns:
            Updated signup

        Raises:
            NotFound: Signup does not exist
            AlreadySet: Deposit already recorded
        """
        stmt = (
            update(ReferralSignup)
            .where(
                ReferralSignup.id == signup_id,
                ReferralSignup.deposit_amount.is_(None),
            )
            .values(deposit_amount=amount, deposit_date=deposit_date)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)

        signup = await self.session.get(
            ReferralSignup, signup_id, populate_existing=True
        )
        if signup is None:
            raise NotFound(f"Signup {signup_id} not found")
        if result.rowcount == 0:
            raise AlreadySet(f"Deposit for signup {signup_id} is already recorded")
        return signup

    async def list_for_referral(self, referral_id: int) -> list[ReferralSignup]:
        """
        Get signups of a referral, newest first.

        Args:
            referral_id: Referral ID

        Returns:
            List of signups
        """
        stmt = (
            select(ReferralSignup)
            .where(ReferralSignup.referral_id == referral_id)
            .order_by(ReferralSignup.signup_date.desc(), ReferralSignup.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> list[ReferralSignup]:
        """Get every signup, newest first (admin export)."""
        stmt = select(ReferralSignup).order_by(
            ReferralSignup.signup_date.desc(), ReferralSignup.id.desc()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_referral(self, referral_id: int) -> int:
        """Count signups attributed to a referral."""
        return await self.count(referral_id=referral_id)

    async def get_deposit_totals(self) -> tuple[int, Decimal]:
        """
        Get program-wide signup count and deposited amount.

        Returns:
            Tuple of (signup count, sum of recorded deposits)
        """
        stmt = select(
            func.count(ReferralSignup.id),
            func.coalesce(func.sum(ReferralSignup.deposit_amount), 0),
        )
        result = await self.session.execute(stmt)
        count, total = result.one()
        return int(count or 0), Decimal(str(total or 0))
