"""
Database decorators for automatic error handling, rollback and retry.

Provides decorators to automatically handle database errors, rollbacks and
bounded retries in async functions that use SQLAlchemy sessions.
"""

import asyncio
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.config.settings import settings
from referral_ledger.utils.exceptions import is_retryable, translate_storage_error


T = TypeVar("T")


def with_rollback_on_error(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that automatically rolls back the session on any exception.

    Usage:
        @with_rollback_on_error
        async def my_function(session: AsyncSession, ...):
            # Your database operations
            pass

    The decorator will:
    1. Execute the wrapped function
    2. If an exception occurs, automatically call session.rollback()
    3. Re-raise the exception, translated to StorageUnavailable when transient

    Args:
        func: Async function to wrap. Must accept 'session' as a keyword
              argument or have it as the first positional argument.

    Returns:
        Wrapped function with automatic rollback on error
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = kwargs.get("session")

        if session is None and args:
            if isinstance(args[0], AsyncSession):
                session = args[0]

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_rollback_on_error "
                f"but no session argument found. Rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            return await func(*args, **kwargs)
        except Exception as e:
            try:
                await session.rollback()
                logger.info(
                    f"Rollback performed in {func.__name__} due to error: {type(e).__name__}"
                )
            except Exception as rollback_error:
                logger.opt(exception=rollback_error).error(
                    f"Failed to rollback in {func.__name__}: {rollback_error}"
                )
            translated = translate_storage_error(e)
            if translated is e:
                raise
            raise translated from e

    return wrapper


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """
    Exponential backoff delay for a retry attempt.

    Args:
        attempt: 1-based number of the attempt that just failed
        base_delay: Delay after the first failure (seconds)
        max_delay: Upper bound (seconds)

    Returns:
        Seconds to wait before the next attempt
    """
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


def with_storage_retry(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that retries an operation on StorageUnavailable.

    Only transient storage failures are retried; business errors propagate
    on the first occurrence. The wrapped operation must be a complete unit
    of work (it commits or rolls back itself), so every attempt starts from
    a clean transaction.

    Attempts and backoff come from settings (STORAGE_RETRY_*), overridable
    per instance through `retry_attempts` / `retry_base_delay` /
    `retry_max_delay` attributes on the bound object.

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
        attempts = getattr(self, "retry_attempts", None) or settings.storage_retry_attempts
        base_delay = getattr(self, "retry_base_delay", None)
        if base_delay is None:
            base_delay = settings.storage_retry_base_delay
        max_delay = getattr(self, "retry_max_delay", None)
        if max_delay is None:
            max_delay = settings.storage_retry_max_delay

        attempt = 1
        while True:
            try:
                return await func(self, *args, **kwargs)
            except Exception as e:
                if not is_retryable(e) or attempt >= attempts:
                    raise
                delay = backoff_delay(attempt, base_delay, max_delay)
                logger.bind(function=func.__name__, error=str(e)).warning(
                    f"Storage unavailable in {func.__name__}, "
                    f"retrying in {delay:.3f}s (attempt {attempt}/{attempts})"
                )
                attempt += 1
                await asyncio.sleep(delay)

    return wrapper
