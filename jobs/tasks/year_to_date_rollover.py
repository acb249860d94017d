"""Year-to-date rollover task."""

import dramatiq
from loguru import logger

from jobs.async_runner import create_local_session, run_async
from jobs.broker import broker  # noqa: F401
from referral_ledger.config.constants import (
    DRAMATIQ_MAX_RETRIES,
    DRAMATIQ_TIME_LIMIT_STANDARD,
)
from referral_ledger.services.referral import reconciliation


@dramatiq.actor(max_retries=DRAMATIQ_MAX_RETRIES, time_limit=DRAMATIQ_TIME_LIMIT_STANDARD)  # 5 min timeout
def rollover_year_to_date() -> None:
    """
    Restamp year-to-date earnings after a calendar year change.

    Referrals untouched since the new year still carry last year's figure;
    reads already compensate, this makes the stored value right again.
    """
    logger.info("Starting year-to-date rollover...")

    try:
        rolled = run_async(_rollover_year_to_date_async())
        logger.info(f"Year-to-date rollover completed: {rolled} referrals updated")

    except Exception as e:
        logger.exception(f"Year-to-date rollover failed: {e}")
        raise  # For dramatiq retry


async def _rollover_year_to_date_async() -> int:
    """Async implementation of the rollover task."""
    async with create_local_session() as session:
        return await reconciliation.rollover_year_to_date(session)
