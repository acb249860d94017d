"""Unit tests for the error taxonomy and storage error translation."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from referral_ledger.utils.exceptions import (
    BUSINESS_ERRORS,
    AlreadySet,
    DuplicateSignup,
    LedgerError,
    NotFound,
    StorageUnavailable,
    is_business_error,
    is_retryable,
    is_transient_storage_error,
    translate_storage_error,
)


class TestLedgerError:
    """Tests for LedgerError and subclasses."""

    def test_default_message_from_docstring(self):
        """Errors without a message describe themselves."""
        error = DuplicateSignup()
        assert error.message == "The user has already been referred."
        assert error.code == "duplicate_signup"

    def test_custom_message(self):
        """Explicit message wins."""
        error = NotFound("Referral 7 not found")
        assert str(error) == "Referral 7 not found"
        assert error.message == "Referral 7 not found"

    def test_codes_are_unique(self):
        """Every error kind has its own stable code."""
        codes = [cls.code for cls in BUSINESS_ERRORS] + [StorageUnavailable.code]
        assert len(codes) == len(set(codes))


class TestCategories:
    """Tests for error category predicates."""

    def test_only_storage_unavailable_is_retryable(self):
        """Business errors are never retried."""
        assert is_retryable(StorageUnavailable())
        for error_type in BUSINESS_ERRORS:
            assert not is_retryable(error_type())

    def test_business_errors(self):
        """StorageUnavailable is not a business error."""
        assert is_business_error(AlreadySet())
        assert not is_business_error(StorageUnavailable())
        assert not is_business_error(RuntimeError())


class TestTranslateStorageError:
    """Tests for translate_storage_error."""

    def test_operational_error_translated(self):
        """'database is locked' and friends become StorageUnavailable."""
        error = OperationalError("UPDATE referrals", {}, Exception("database is locked"))
        translated = translate_storage_error(error)
        assert isinstance(translated, StorageUnavailable)

    def test_connection_invalidated(self):
        """A dropped connection is transient."""
        error = DBAPIError("SELECT 1", {}, Exception("gone"), connection_invalidated=True)
        assert is_transient_storage_error(error)

    @pytest.mark.parametrize("sqlstate", ["40001", "40P01", "55P03"])
    def test_transient_sqlstates(self, sqlstate):
        """Serialization failures, deadlocks and lock timeouts are transient."""
        orig = MagicMock()
        orig.pgcode = None
        orig.sqlstate = sqlstate
        error = DBAPIError("UPDATE referrals", {}, orig)
        assert is_transient_storage_error(error)

    def test_integrity_error_not_translated(self):
        """Constraint violations are not transient."""
        error = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        assert translate_storage_error(error) is error

    def test_ledger_error_passes_through(self):
        """Ledger errors are already translated."""
        error = NotFound()
        assert translate_storage_error(error) is error

    def test_unrelated_error_passes_through(self):
        """Programming errors are not masked."""
        error = KeyError("x")
        assert translate_storage_error(error) is error

    def test_all_errors_are_ledger_errors(self):
        """Every business error subclasses LedgerError."""
        assert all(issubclass(cls, LedgerError) for cls in BUSINESS_ERRORS)
