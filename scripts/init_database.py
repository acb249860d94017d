#!/usr/bin/env python3
"""
Create the ledger tables directly from the models.

For local runs and demos only; deployed databases are migrated with Alembic.
"""

import asyncio
import sys

from loguru import logger
from sqlalchemy import inspect

from referral_ledger.config.database import create_engine
from referral_ledger.models import Base

logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> list[str]:
    """
    Create missing ledger tables.

    Returns:
        Names of the tables present afterwards
    """
    engine = create_engine(echo=False)
    logger.info(f"Creating ledger tables on {engine.dialect.name}...")

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
            tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
    finally:
        await engine.dispose()

    logger.success(f"Ledger tables ready: {', '.join(sorted(tables))}")
    return tables


if __name__ == "__main__":
    asyncio.run(init_database())
