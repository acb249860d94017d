"""
Ledger error taxonomy.

Every error a caller can observe is a LedgerError subclass with a stable
`code`. Business errors describe a failed precondition and are never
retried; StorageUnavailable is the only transient kind.
"""

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError


class LedgerError(Exception):
    """Base class for all ledger errors."""

    code = "ledger_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or (self.__class__.__doc__ or self.code).strip()


class AlreadyExists(LedgerError):
    """The user already owns a referral."""

    code = "already_exists"


class UnknownCode(LedgerError):
    """No referral owns this code."""

    code = "unknown_code"


class InactiveReferral(LedgerError):
    """The referral is suspended and does not accept signups."""

    code = "inactive_referral"


class DuplicateSignup(LedgerError):
    """The user has already been referred."""

    code = "duplicate_signup"


class AlreadySet(LedgerError):
    """The deposit for this signup has already been recorded."""

    code = "already_set"


class CodeGenerationExhausted(LedgerError):
    """Could not find a free referral code."""

    code = "code_generation_exhausted"


class NotFound(LedgerError):
    """Referral, signup or payment not found."""

    code = "not_found"


class StorageUnavailable(LedgerError):
    """The backing store is temporarily unavailable."""

    code = "storage_unavailable"


class InvalidAmount(LedgerError):
    """The monetary amount is not valid."""

    code = "invalid_amount"


class InvalidStatusTransition(LedgerError):
    """The requested status change is not allowed."""

    code = "invalid_status_transition"


class SelfReferral(LedgerError):
    """A user cannot sign up through their own referral code."""

    code = "self_referral"


class MissingActor(LedgerError):
    """Administrative mutations must name the acting administrator."""

    code = "missing_actor"


# Exception categories based on handling strategy

# Caller-visible precondition failures - returned as-is, never retried
BUSINESS_ERRORS = (
    AlreadyExists,
    UnknownCode,
    InactiveReferral,
    DuplicateSignup,
    AlreadySet,
    CodeGenerationExhausted,
    NotFound,
    InvalidAmount,
    InvalidStatusTransition,
    SelfReferral,
    MissingActor,
)

# Eligible for bounded retry with backoff at the service boundary
RETRYABLE_ERRORS = (
    StorageUnavailable,
)

# Driver-level failures that mean "try again later"
TRANSIENT_STORAGE_ERRORS = (
    OperationalError,  # lock timeouts, "database is locked", dropped connections
    InterfaceError,    # connection closed underneath the session
    ConnectionError,
    TimeoutError,
)

# PostgreSQL SQLSTATEs: serialization_failure, deadlock_detected, lock_not_available
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01", "55P03"})


def is_retryable(exc: BaseException) -> bool:
    """
    Check if exception may be retried.

    Args:
        exc: Exception to check

    Returns:
        True if exception is transient
    """
    return isinstance(exc, RETRYABLE_ERRORS)


def is_business_error(exc: BaseException) -> bool:
    """
    Check if exception is a business precondition failure.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be returned to the caller unchanged
    """
    return isinstance(exc, BUSINESS_ERRORS)


def is_transient_storage_error(exc: BaseException) -> bool:
    """
    Check if a driver/SQLAlchemy exception is transient.

    Args:
        exc: Exception raised by the storage layer

    Returns:
        True if the failure should surface as StorageUnavailable
    """
    if isinstance(exc, TRANSIENT_STORAGE_ERRORS):
        return True
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return True
        sqlstate = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
        return sqlstate in TRANSIENT_SQLSTATES
    return False


def translate_storage_error(exc: BaseException) -> BaseException:
    """
    Map a storage exception onto the ledger taxonomy.

    Args:
        exc: Exception raised inside a unit of work

    Returns:
        StorageUnavailable for transient failures, the original exception otherwise
    """
    if isinstance(exc, LedgerError):
        return exc
    if is_transient_storage_error(exc):
        return StorageUnavailable(f"{type(exc).__name__}: {exc}")
    return exc
