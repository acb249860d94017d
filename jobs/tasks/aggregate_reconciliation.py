"""Aggregate reconciliation task."""

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
def reconcile_referral_aggregates() -> None:
    """
    Recompute every referral's aggregates and repair drift.

    Drift means something wrote signups or payments outside the ledger
    service (manual SQL, a restored backup).
    """
    logger.info("Starting aggregate reconciliation...")

    try:
        drifted = run_async(_reconcile_referral_aggregates_async())
        if drifted:
            logger.warning(f"Aggregate reconciliation repaired referrals: {drifted}")
        else:
            logger.info("Aggregate reconciliation completed: no drift")

    except Exception as e:
        logger.exception(f"Aggregate reconciliation failed: {e}")
        raise  # For dramatiq retry


async def _reconcile_referral_aggregates_async() -> list[int]:
    """Async implementation of the reconciliation task."""
    async with create_local_session() as session:
        return await reconciliation.reconcile_aggregates(session)
