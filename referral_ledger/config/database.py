"""
Database configuration.

Async engine and session factory shared by the API and background jobs.
"""

from typing import Any

from loguru import logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from referral_ledger.config.settings import settings


def make_async_db_url(url: str) -> str:
    """Accept plain postgres URLs and return the asyncpg form."""
    if url.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
        return url
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    if url.startswith("sqlite://"):
        return "sqlite+aiosqlite://" + url[len("sqlite://"):]
    raise RuntimeError(f"Unsupported DATABASE_URL format: {url.split(':', 1)[0]}")


def _configure_sqlite_connection(dbapi_connection: Any, connection_record: Any) -> None:
    """SQLite ignores FOREIGN KEY clauses unless asked per connection.

    WAL lets concurrent sessions read while one of them writes.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def create_engine(url: str | None = None, **kwargs: Any) -> AsyncEngine:
    """
    Create async engine for the ledger database.

    Args:
        url: Database URL (defaults to settings.database_url)
        **kwargs: Extra create_async_engine arguments

    Returns:
        Configured AsyncEngine
    """
    db_url = make_async_db_url(url or settings.database_url)
    kwargs.setdefault("echo", settings.database_echo)

    if db_url.startswith("sqlite"):
        engine = create_async_engine(db_url, **kwargs)
        event.listen(engine.sync_engine, "connect", _configure_sqlite_connection)
    else:
        kwargs.setdefault("pool_pre_ping", True)
        engine = create_async_engine(db_url, **kwargs)

    logger.info(f"Database engine initialized: {engine.dialect.name}")
    return engine


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to the given (or a new) engine."""
    return async_sessionmaker(
        bind=engine or create_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )
