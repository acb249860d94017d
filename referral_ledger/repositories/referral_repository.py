"""
Referral repository.

Data access layer for Referral model.
"""

from decimal import Decimal

from sqlalchemy import case, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.enums import ReferralStatus
from referral_ledger.models.referral import Referral
from referral_ledger.repositories.base import BaseRepository
from referral_ledger.utils.exceptions import AlreadyExists


class ReferralCodeTaken(Exception):
    """Insert lost a race on the referral_code unique constraint."""


class ReferralRepository(BaseRepository[Referral]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def get_by_user_id(self, user_id: str) -> Referral | None:
        """
        Get referral owned by a user.

        Args:
            user_id: Owning user ID

        Returns:
            Referral or None
        """
        return await self.get_by(user_id=user_id)

    async def get_by_code(self, code: str) -> Referral | None:
        """
        Get referral by its code.

        Args:
            code: Normalized (upper-case) referral code

        Returns:
            Referral or None
        """
        return await self.get_by(referral_code=code)

    async def code_exists(self, code: str) -> bool:
        """Check whether a referral code is already taken."""
        return await self.exists(referral_code=code)

    async def create_for_user(self, user_id: str, code: str) -> Referral:
        """
        Create a referral for a user.

        Args:
            user_id: Owning user ID
            code: Pre-generated referral code

        Returns:
            Created referral in 'pending' status

        Raises:
            AlreadyExists: User already owns a referral
            ReferralCodeTaken: Another referral took the code concurrently
        """
        try:
            return await self.add(
                user_id=user_id,
                referral_code=code,
                status=ReferralStatus.PENDING.value,
                is_active=True,
            )
        except IntegrityError as e:
            message = str(e.orig)
            if "referral_code" in message:
                raise ReferralCodeTaken(code) from e
            if "user_id" in message:
                raise AlreadyExists(
                    f"User {user_id} already has a referral"
                ) from e
            raise

    async def search(
        self,
        search: str | None = None,
        status: ReferralStatus | None = None,
        is_active: bool | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Referral]:
        """
        Search referrals for the admin listing.

        Args:
            search: Case-insensitive substring of code or user ID
            status: Optional status filter
            is_active: Optional suspension filter
            limit: Max number of results
            offset: Number of results to skip

        Returns:
            Matching referrals, newest first
        """
        stmt = select(Referral)

        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    Referral.referral_code.ilike(pattern),
                    Referral.user_id.ilike(pattern),
                )
            )
        if status is not None:
            stmt = stmt.where(Referral.status == status.value)
        if is_active is not None:
            stmt = stmt.where(Referral.is_active == is_active)

        stmt = stmt.order_by(Referral.created_at.desc(), Referral.id.desc())
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_ids_with_stale_ytd(self, year: int) -> list[int]:
        """
        Get referral IDs whose stored year-to-date figure is for another year.

        Args:
            year: Current calendar year

        Returns:
            List of referral IDs
        """
        stmt = select(Referral.id).where(Referral.ytd_year != year).order_by(Referral.id)
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]

    async def get_all_ids(self) -> list[int]:
        """Get every referral ID (reconciliation sweep)."""
        result = await self.session.execute(select(Referral.id).order_by(Referral.id))
        return [row[0] for row in result.all()]

    async def get_program_totals(self) -> dict:
        """
        Get program-wide referral counters for the admin dashboard.

        Returns:
            Dict with total_referrals, total_earnings, active_referrals,
            pending_referrals
        """
        stmt = select(
            func.count(Referral.id),
            func.coalesce(func.sum(Referral.total_earnings), 0),
            func.coalesce(
                func.sum(case((Referral.is_active.is_(True), 1), else_=0)), 0
            ),
            func.coalesce(
                func.sum(
                    case((Referral.status == ReferralStatus.PENDING.value, 1), else_=0)
                ),
                0,
            ),
        )
        result = await self.session.execute(stmt)
        total, earnings, active, pending = result.one()

        return {
            "total_referrals": int(total or 0),
            "total_earnings": Decimal(str(earnings or 0)),
            "active_referrals": int(active or 0),
            "pending_referrals": int(pending or 0),
        }

    async def get_top_earner(self) -> Referral | None:
        """
        Get the referral with the highest total earnings.

        Ties go to the oldest referral. Referrals that never earned are ignored.

        Returns:
            Referral or None
        """
        stmt = (
            select(Referral)
            .where(Referral.total_earnings > 0)
            .order_by(Referral.total_earnings.desc(), Referral.id.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
