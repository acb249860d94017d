"""
Error middleware.

Maps ledger errors onto HTTP responses with a stable JSON body:
{"ok": false, "error": {"code": ..., "message": ...}}
"""

from aiohttp import web
from loguru import logger

from referral_ledger.utils.exceptions import (
    AlreadyExists,
    AlreadySet,
    CodeGenerationExhausted,
    DuplicateSignup,
    InactiveReferral,
    InvalidAmount,
    InvalidStatusTransition,
    LedgerError,
    MissingActor,
    NotFound,
    SelfReferral,
    StorageUnavailable,
    UnknownCode,
)

ERROR_STATUS: dict[type[LedgerError], int] = {
    NotFound: 404,
    UnknownCode: 404,
    AlreadyExists: 409,
    DuplicateSignup: 409,
    AlreadySet: 409,
    InvalidStatusTransition: 409,
    InactiveReferral: 403,
    InvalidAmount: 400,
    SelfReferral: 400,
    MissingActor: 400,
    CodeGenerationExhausted: 500,
    StorageUnavailable: 503,
}


def error_response(code: str, message: str, status: int) -> web.Response:
    """Build the JSON error body."""
    return web.json_response(
        {"ok": False, "error": {"code": code, "message": message}},
        status=status,
    )


def status_for(exc: LedgerError) -> int:
    """HTTP status of a ledger error (subclasses inherit their parent's)."""
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS:
            return ERROR_STATUS[error_type]
    return 500


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Translate exceptions raised by handlers into JSON error responses."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except LedgerError as e:
        status = status_for(e)
        if status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.code}: {e.message}")
        return error_response(e.code, e.message, status)
    except ValueError as e:
        # Malformed JSON, pydantic ValidationError, bad dates or IDs
        return error_response("invalid_request", str(e), 400)
    except Exception:
        logger.exception(f"Unhandled error in {request.method} {request.path}")
        return error_response("internal_error", "Internal server error", 500)
