"""
Logging configuration.

Configures loguru sinks for the API process and the job workers.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from referral_ledger.config.settings import settings


def setup_logging(component: str = "api") -> None:
    """
    Configure logger with file rotation.

    Args:
        component: Process name written into the startup line
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.add(
        settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info(f"Starting referral ledger {component} ({settings.environment})...")
