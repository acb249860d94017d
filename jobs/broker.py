"""
Dramatiq broker for the ledger maintenance jobs.

Sweeps are retried only when the database was unreachable; a business error
in a sweep is a bug and is left to fail loudly.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from referral_ledger.config.constants import (
    DRAMATIQ_MAX_BACKOFF_MS,
    DRAMATIQ_MAX_RETRIES,
    DRAMATIQ_MIN_BACKOFF_MS,
)
from referral_ledger.config.settings import settings
from referral_ledger.utils.exceptions import is_retryable


def should_retry(retries_so_far: int, exception: Exception) -> bool:
    """Retry a failed sweep only for transient storage failures."""
    return retries_so_far < DRAMATIQ_MAX_RETRIES and is_retryable(exception)


redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password or None,
    db=settings.redis_db,
)

# ShutdownNotifications: a sweep stops between referrals on worker shutdown
redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
redis_broker.add_middleware(
    Retries(
        min_backoff=DRAMATIQ_MIN_BACKOFF_MS,
        max_backoff=DRAMATIQ_MAX_BACKOFF_MS,
        retry_when=should_retry,
    )
)

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(
    f"Ledger job broker ready on "
    f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
)
