"""
Job scheduler.

Enqueues the ledger maintenance actors on their schedules. The actors
themselves run in dramatiq workers:

    dramatiq jobs.tasks.year_to_date_rollover jobs.tasks.aggregate_reconciliation
    python -m jobs.scheduler
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from jobs.health import set_scheduler, start_health_server, stop_health_server
from jobs.tasks.aggregate_reconciliation import reconcile_referral_aggregates
from jobs.tasks.year_to_date_rollover import rollover_year_to_date
from referral_ledger.config.logging import setup_logging
from referral_ledger.config.settings import settings


def create_scheduler() -> AsyncIOScheduler:
    """
    Create the scheduler with all ledger maintenance jobs.

    Returns:
        Configured, not yet started scheduler
    """
    scheduler = AsyncIOScheduler(
        timezone="UTC",
        job_defaults={"coalesce": True, "max_instances": 1},
    )

    scheduler.add_job(
        rollover_year_to_date.send,
        CronTrigger(month=1, day=1, hour=0, minute=5, timezone="UTC"),
        id="ytd_rollover_new_year",
        name="Year-to-date rollover (new year)",
    )
    # Catches a missed new-year run (scheduler down at midnight)
    scheduler.add_job(
        rollover_year_to_date.send,
        CronTrigger(hour=0, minute=30, timezone="UTC"),
        id="ytd_rollover_daily",
        name="Year-to-date rollover (daily)",
    )
    scheduler.add_job(
        reconcile_referral_aggregates.send,
        IntervalTrigger(hours=1),
        id="aggregate_reconciliation",
        name="Aggregate reconciliation",
    )

    return scheduler


async def run_scheduler() -> None:
    """Run the scheduler until SIGINT/SIGTERM."""
    scheduler = create_scheduler()
    scheduler.start()
    set_scheduler(scheduler)
    logger.info(f"Scheduler started with {len(scheduler.get_jobs())} jobs")

    runner = await start_health_server(
        settings.scheduler_health_host, settings.scheduler_health_port
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down scheduler...")
        scheduler.shutdown(wait=False)
        await stop_health_server(runner)


def main() -> None:
    """Scheduler entry point."""
    setup_logging("scheduler")
    asyncio.run(run_scheduler())


if __name__ == "__main__":
    main()
