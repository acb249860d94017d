"""Unit tests for transaction handling and storage retries."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from referral_ledger.services.base_service import BaseService, transaction
from referral_ledger.utils.db_decorators import backoff_delay, with_storage_retry
from referral_ledger.utils.exceptions import NotFound, StorageUnavailable


class FlakyService(BaseService):
    """Service whose operation fails a configurable number of times."""

    retry_attempts = 3
    retry_base_delay = 0
    retry_max_delay = 0

    def __init__(self, session, failures: list[Exception]) -> None:
        super().__init__(session)
        self.failures = list(failures)
        self.calls = 0

    @with_storage_retry
    @transaction
    async def operation(self) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return "done"


def locked() -> OperationalError:
    return OperationalError("UPDATE referrals", {}, Exception("database is locked"))


class TestBackoffDelay:
    """Tests for backoff_delay."""

    def test_exponential(self):
        """Delay doubles per attempt."""
        assert backoff_delay(1, 0.05, 1.0) == 0.05
        assert backoff_delay(2, 0.05, 1.0) == 0.1
        assert backoff_delay(3, 0.05, 1.0) == 0.2

    def test_capped(self):
        """Delay never exceeds the cap."""
        assert backoff_delay(10, 0.05, 1.0) == 1.0


class TestTransaction:
    """Tests for the transaction decorator."""

    @pytest.mark.asyncio
    async def test_commits_on_success(self, mock_session):
        """Successful operation commits once."""
        service = FlakyService(mock_session, [])

        assert await service.operation() == "done"
        mock_session.commit.assert_awaited_once()
        mock_session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_translates_operational_error(self, mock_session):
        """Driver lock errors surface as StorageUnavailable after rollback."""
        service = FlakyService(mock_session, [locked()])
        service.retry_attempts = 1

        with pytest.raises(StorageUnavailable):
            await service.operation()
        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()


class TestWithStorageRetry:
    """Tests for the with_storage_retry decorator."""

    @pytest.mark.asyncio
    async def test_retries_until_success(self, mock_session):
        """Transient failures are retried within the budget."""
        service = FlakyService(mock_session, [locked(), locked()])

        assert await service.operation() == "done"
        assert service.calls == 3
        assert mock_session.rollback.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_budget(self, mock_session):
        """Persistent failure raises after the last attempt."""
        service = FlakyService(mock_session, [locked(), locked(), locked(), locked()])

        with pytest.raises(StorageUnavailable):
            await service.operation()
        assert service.calls == 3

    @pytest.mark.asyncio
    async def test_business_error_not_retried(self, mock_session):
        """Business errors propagate on first occurrence."""
        service = FlakyService(mock_session, [NotFound()])

        with pytest.raises(NotFound):
            await service.operation()
        assert service.calls == 1

    @pytest.mark.asyncio
    async def test_sleeps_between_attempts(self, mock_session, monkeypatch):
        """Backoff delay is awaited between attempts."""
        sleep = AsyncMock()
        monkeypatch.setattr("referral_ledger.utils.db_decorators.asyncio.sleep", sleep)
        service = FlakyService(mock_session, [locked()])
        service.retry_base_delay = 0.5
        service.retry_max_delay = 2.0

        await service.operation()

        sleep.assert_awaited_once_with(0.5)
