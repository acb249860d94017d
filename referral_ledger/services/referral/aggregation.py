"""
Aggregation engine.

Re-derives referral aggregates from the signup and payment rows. Runs inside
the caller's transaction, after the parent referral row has been locked.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.config.settings import settings
from referral_ledger.models.referral import Referral
from referral_ledger.repositories.referral_payment_repository import (
    ReferralPaymentRepository,
)
from referral_ledger.repositories.referral_signup_repository import (
    ReferralSignupRepository,
)
from referral_ledger.services.referral.commission import quantize_money
from referral_ledger.utils.datetime_utils import utc_now, year_bounds


@dataclass(frozen=True)
class ReferralTotals:
    """Aggregates of one referral as derived from source rows."""

    total_referrals: int
    total_earnings: Decimal
    year_to_date_earnings: Decimal
    ytd_year: int

    def matches(self, referral: Referral) -> bool:
        """Whether the stored aggregates on a referral agree with these."""
        return (
            referral.total_referrals == self.total_referrals
            and quantize_money(referral.total_earnings) == self.total_earnings
            and quantize_money(referral.year_to_date_earnings) == self.year_to_date_earnings
            and referral.ytd_year == self.ytd_year
        )


class AggregationEngine:
    """Recompute-from-source aggregates for referrals."""

    def __init__(self, session: AsyncSession, row_cap: int | None = None) -> None:
        """
        Initialize aggregation engine.

        Args:
            session: Async database session
            row_cap: Signup count above which a recompute is logged as expensive
        """
        self.session = session
        self.row_cap = row_cap or settings.aggregation_row_cap
        self.signup_repo = ReferralSignupRepository(session)
        self.payment_repo = ReferralPaymentRepository(session)

    async def compute(self, referral_id: int, now: datetime | None = None) -> ReferralTotals:
        """
        Compute aggregates without writing them.

        Args:
            referral_id: Referral ID
            now: Reference time for the year-to-date window

        Returns:
            ReferralTotals
        """
        year = (now or utc_now()).year
        since, until = year_bounds(year)

        total_referrals = await self.signup_repo.count_for_referral(referral_id)
        total_earnings = await self.payment_repo.sum_for_referral(referral_id)
        ytd_earnings = await self.payment_repo.sum_for_referral(
            referral_id, since=since, until=until
        )

        if total_referrals > self.row_cap:
            logger.bind(referral_id=referral_id, signups=total_referrals).warning(
                f"Referral {referral_id} has {total_referrals} signups, "
                f"above the aggregation row cap of {self.row_cap}"
            )

        return ReferralTotals(
            total_referrals=total_referrals,
            total_earnings=quantize_money(total_earnings),
            year_to_date_earnings=quantize_money(ytd_earnings),
            ytd_year=year,
        )

    async def recompute(
        self, referral: Referral, now: datetime | None = None
    ) -> ReferralTotals:
        """
        Recompute aggregates and write them onto the referral row.

        The caller owns the transaction and must hold the row lock.

        Args:
            referral: Locked referral entity
            now: Reference time for the year-to-date window

        Returns:
            ReferralTotals that were written
        """
        await self.session.flush()
        totals = await self.compute(referral.id, now=now)

        referral.total_referrals = totals.total_referrals
        referral.total_earnings = totals.total_earnings
        referral.year_to_date_earnings = totals.year_to_date_earnings
        referral.ytd_year = totals.ytd_year

        await self.session.flush()
        return totals
