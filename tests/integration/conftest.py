"""
Shared fixtures for integration tests.

Each test gets its own file-backed SQLite database (via aiosqlite) so that
several sessions can run concurrently against the same data.
"""

import pytest
import pytest_asyncio

from referral_ledger.config.database import create_engine, create_session_maker
from referral_ledger.models import Base
from referral_ledger.services.ledger_service import ReferralLedgerService

ADMIN = "admin@example.com"


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh ledger database with all tables created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the test database."""
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    """Single session for direct assertions against the database."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_service(base_url):
    """
    Build a ledger service for a session.

    Returns:
        Callable taking an AsyncSession
    """
    def factory(session):
        return ReferralLedgerService(
            session,
            base_url=base_url,
            retry_attempts=5,
            retry_base_delay=0.01,
            retry_max_delay=0.1,
        )
    return factory


@pytest_asyncio.fixture
async def service(session_maker, make_service):
    """Ledger service on its own session."""
    async with session_maker() as session:
        yield make_service(session)


@pytest.fixture
def admin():
    """Acting administrator for audited operations."""
    return ADMIN
