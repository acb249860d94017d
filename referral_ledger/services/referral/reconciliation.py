"""
Aggregate maintenance.

Year-to-date rollover and drift reconciliation, run by background jobs.
Each referral is handled in its own short transaction under a row lock,
so these sweeps never hold locks across the whole table.
"""

from datetime import datetime

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.repositories.referral_repository import ReferralRepository
from referral_ledger.services.referral.aggregation import AggregationEngine
from referral_ledger.utils.datetime_utils import utc_now
from referral_ledger.utils.db_decorators import with_rollback_on_error


@with_rollback_on_error
async def rollover_year_to_date(session: AsyncSession, now: datetime | None = None) -> int:
    """
    Rewrite year-to-date earnings of referrals still stamped with a past year.

    Args:
        session: Async database session
        now: Reference time (defaults to current UTC time)

    Returns:
        Number of referrals rolled over
    """
    now = now or utc_now()
    referral_repo = ReferralRepository(session)
    engine = AggregationEngine(session)

    stale_ids = await referral_repo.get_ids_with_stale_ytd(now.year)
    await session.commit()

    rolled = 0
    for referral_id in stale_ids:
        referral = await referral_repo.get_for_update(referral_id)
        if referral is None or referral.ytd_year == now.year:
            await session.commit()
            continue

        previous_year = referral.ytd_year
        totals = await engine.recompute(referral, now=now)
        await session.commit()
        rolled += 1

        logger.bind(referral_id=referral_id).info(
            f"Rolled over YTD for referral {referral_id}: "
            f"{previous_year} -> {totals.ytd_year}, ytd={totals.year_to_date_earnings}"
        )

    return rolled


@with_rollback_on_error
async def reconcile_aggregates(session: AsyncSession, now: datetime | None = None) -> list[int]:
    """
    Compare stored aggregates with source rows and repair any drift.

    Args:
        session: Async database session
        now: Reference time (defaults to current UTC time)

    Returns:
        IDs of referrals whose aggregates had drifted
    """
    now = now or utc_now()
    referral_repo = ReferralRepository(session)
    engine = AggregationEngine(session)

    referral_ids = await referral_repo.get_all_ids()
    await session.commit()

    drifted: list[int] = []
    for referral_id in referral_ids:
        referral = await referral_repo.get_for_update(referral_id)
        if referral is None:
            await session.commit()
            continue

        totals = await engine.compute(referral_id, now=now)
        if totals.matches(referral):
            await session.commit()
            continue

        logger.bind(referral_id=referral_id).warning(
            f"Aggregate drift on referral {referral_id}: stored "
            f"count={referral.total_referrals} earnings={referral.total_earnings} "
            f"ytd={referral.year_to_date_earnings}/{referral.ytd_year}, computed "
            f"count={totals.total_referrals} earnings={totals.total_earnings} "
            f"ytd={totals.year_to_date_earnings}/{totals.ytd_year}"
        )
        await engine.recompute(referral, now=now)
        await session.commit()
        drifted.append(referral_id)

    if drifted:
        logger.warning(f"Repaired aggregates on {len(drifted)} referrals")
    else:
        logger.info(f"Aggregates consistent across {len(referral_ids)} referrals")

    return drifted
