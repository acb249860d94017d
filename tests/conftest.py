"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for settings; must be set before referral_ledger imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_referral_ledger.db")
os.environ.setdefault("REFERRAL_BASE_URL", "https://www.peacefulinvestment.com")
os.environ.setdefault("STORAGE_RETRY_BASE_DELAY", "0")
os.environ.setdefault("LOG_FILE", "logs/test_referral_ledger.log")
os.environ.setdefault("ENVIRONMENT", "test")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def base_url():
    """Site origin used for referral links in tests."""
    return "https://example.com"
