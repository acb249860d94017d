"""
Async runner for dramatiq tasks.

Dramatiq actors are synchronous and run in worker threads; the ledger is
async. Each worker thread gets one long-lived event loop, and each task
opens its own NullPool engine so no connection outlives its loop.
"""

import asyncio
import threading
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import NullPool

from referral_ledger.config.database import create_engine, create_session_maker

T = TypeVar("T")

# Thread-local storage for event loops
_thread_local = threading.local()


def get_event_loop() -> asyncio.AbstractEventLoop:
    """
    Get or create event loop for current thread.

    Reusing one loop per thread prevents "Future attached to a different
    loop" errors from drivers that cache loop references.
    """
    loop = getattr(_thread_local, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.loop = loop
        logger.debug(f"Created new event loop for thread {threading.current_thread().name}")
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run async coroutine in the thread's event loop.

    Args:
        coro: Async coroutine to run

    Returns:
        Result of the coroutine
    """
    loop = get_event_loop()
    try:
        return loop.run_until_complete(coro)
    except Exception as e:
        logger.exception(f"Error running async coroutine: {e}")
        raise


@asynccontextmanager
async def create_local_session() -> AsyncIterator[AsyncSession]:
    """
    Create a database session for the current event loop.

    Usage:
        async with create_local_session() as session:
            await rollover_year_to_date(session)

    Yields:
        AsyncSession bound to a NullPool engine disposed on exit
    """
    local_engine = create_engine(echo=False, poolclass=NullPool)
    session_maker = create_session_maker(local_engine)

    try:
        async with session_maker() as session:
            yield session
    finally:
        await local_engine.dispose()
