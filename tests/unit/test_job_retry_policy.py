"""
Unit tests for the background job retry policy.

The broker is only configured here, no Redis connection is opened.
"""

from jobs.broker import should_retry
from referral_ledger.config.constants import DRAMATIQ_MAX_RETRIES
from referral_ledger.utils.exceptions import NotFound, StorageUnavailable


class TestShouldRetry:
    """Tests for should_retry."""

    def test_storage_failure_is_retried(self):
        """Transient storage failures are retried."""
        assert should_retry(0, StorageUnavailable("database is locked"))

    def test_business_error_is_not_retried(self):
        """Business errors fail the message immediately."""
        assert not should_retry(0, NotFound("Referral 1 not found"))

    def test_unexpected_error_is_not_retried(self):
        """Programming errors are not retried either."""
        assert not should_retry(0, KeyError("total"))

    def test_retries_are_bounded(self):
        """Stop after the configured number of retries."""
        assert not should_retry(DRAMATIQ_MAX_RETRIES, StorageUnavailable())
