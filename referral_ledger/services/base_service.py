"""
Base service class.

Every ledger operation is one unit of work on its own session: the
`transaction` decorator commits or rolls back, and turns driver-level
failures into StorageUnavailable so callers only ever see LedgerError kinds.
"""

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.utils.exceptions import is_business_error, translate_storage_error


# Type variable for generic decorator return types
T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    - Transaction helpers
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()

    @property
    def dialect_name(self) -> str:
        """Name of the SQL dialect the session is bound to."""
        return self.session.get_bind().dialect.name


def transaction(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to wrap method in transaction with automatic commit/rollback.

    Commits on success, rolls back on exception. Transient storage failures
    are re-raised as StorageUnavailable; business errors pass through
    unchanged and are logged at warning level only.

    Usage:
        @transaction
        async def my_service_method(self, ...):
            # Your code here
            pass

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except Exception as e:
            await self.rollback()
            translated = translate_storage_error(e)

            if is_business_error(translated):
                self.logger.bind(
                    function=func.__name__, error=str(translated)
                ).warning(f"{func.__name__} rejected: {translated.code}")
            else:
                self.logger.bind(function=func.__name__, error=str(e)).opt(
                    exception=e
                ).error(f"Transaction failed in {func.__name__}")

            if translated is e:
                raise
            raise translated from e

    return wrapper


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to log method entry/exit with timing.

    Usage:
        @log_operation
        async def my_service_method(self, user_id: str):
            # Your code here
            pass

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        start_time = time.time()

        self.logger.bind(
            function=func.__name__,
            args_count=len(args),
            kwargs_keys=list(kwargs.keys()),
        ).debug(f"Starting {func.__name__}")

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            self.logger.bind(
                function=func.__name__,
                duration_seconds=round(time.time() - start_time, 3),
                error=str(e),
                success=False,
            ).info(f"Failed {func.__name__}")
            raise

        self.logger.bind(
            function=func.__name__,
            duration_seconds=round(time.time() - start_time, 3),
            success=True,
        ).info(f"Completed {func.__name__}")
        return result

    return wrapper
