"""Application error taxonomy and its HTTP mapping.

Learn: Services raise typed errors (NotFound, Forbidden, ...) and never
touch HTTP. Each error carries an ErrorKind; status_for() is the one
place that turns a kind into a status code, and the exception handlers
registered by create_app() render every failure as
{"message": ..., "code": ..., "errors"?: ...}.

Storage errors are translated here too: a unique violation becomes a
Conflict, a foreign-key violation becomes StillReferenced (delete) or
InvalidReference (write). Anything else is logged and surfaced as a
generic Internal error.
"""

import enum
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


class ErrorKind(str, enum.Enum):
    VALIDATION_FAILED = "validation_failed"
    TOKEN_MISSING = "token_missing"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_INVALID = "token_invalid"
    INVALID_CREDENTIALS = "invalid_credentials"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_REFERENCE = "invalid_reference"
    STILL_REFERENCED = "still_referenced"
    SELF_DELETION_FORBIDDEN = "self_deletion_forbidden"
    INTERNAL = "internal"


def status_for(kind: ErrorKind) -> int:
    """Map an error kind to its HTTP status code."""
    if kind in (
        ErrorKind.VALIDATION_FAILED,
        ErrorKind.INVALID_REFERENCE,
        ErrorKind.STILL_REFERENCED,
    ):
        return 400
    if kind in (
        ErrorKind.TOKEN_MISSING,
        ErrorKind.TOKEN_EXPIRED,
        ErrorKind.TOKEN_INVALID,
        ErrorKind.INVALID_CREDENTIALS,
    ):
        return 401
    if kind in (ErrorKind.FORBIDDEN, ErrorKind.SELF_DELETION_FORBIDDEN):
        return 403
    if kind is ErrorKind.NOT_FOUND:
        return 404
    if kind is ErrorKind.CONFLICT:
        return 409
    if kind is ErrorKind.INTERNAL:
        return 500
    raise ValueError(f"Unmapped error kind: {kind!r}")


class AppError(Exception):
    """Base class for every error the API reports on purpose."""

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return status_for(self.kind)

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.kind.value}


class ValidationFailed(AppError):
    kind = ErrorKind.VALIDATION_FAILED
    default_message = "Validation failed"

    def __init__(
        self,
        errors: Optional[dict[str, list[str]]] = None,
        message: Optional[str] = None,
    ):
        super().__init__(message)
        self.errors = errors or {}

    def to_dict(self) -> dict:
        return {**super().to_dict(), "errors": self.errors}


class Unauthenticated(AppError):
    kind = ErrorKind.TOKEN_INVALID
    default_message = "Authentication failed."


class TokenMissing(Unauthenticated):
    kind = ErrorKind.TOKEN_MISSING
    default_message = "Authentication required. No token provided."


class TokenExpired(Unauthenticated):
    kind = ErrorKind.TOKEN_EXPIRED
    default_message = "Authentication failed: Token expired."


class TokenInvalid(Unauthenticated):
    kind = ErrorKind.TOKEN_INVALID
    default_message = "Authentication failed: Invalid token."


class InvalidCredentials(Unauthenticated):
    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Invalid email or password."


class Forbidden(AppError):
    kind = ErrorKind.FORBIDDEN
    default_message = "You are not allowed to perform this action."


class NotFound(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Not found."


class Conflict(AppError):
    kind = ErrorKind.CONFLICT
    default_message = "Resource already exists."


class InvalidReference(AppError):
    kind = ErrorKind.INVALID_REFERENCE
    default_message = "Referenced entity not found."


class StillReferenced(AppError):
    kind = ErrorKind.STILL_REFERENCED
    default_message = "Cannot delete, still referenced."


class SelfDeletionForbidden(AppError):
    kind = ErrorKind.SELF_DELETION_FORBIDDEN
    default_message = "Admins cannot delete their own account."


class Internal(AppError):
    kind = ErrorKind.INTERNAL


# ─── Storage error translation ───────────────────────────

_PG_UNIQUE_VIOLATION = "23505"
_PG_FOREIGN_KEY_VIOLATION = "23503"


def _constraint_code(exc: IntegrityError) -> Optional[str]:
    """Return "unique" / "foreign_key" for a constraint violation, else None.

    asyncpg exposes the SQLSTATE on the driver exception; SQLite only
    reports it in the message text.
    """
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == _PG_UNIQUE_VIOLATION:
        return "unique"
    if sqlstate == _PG_FOREIGN_KEY_VIOLATION:
        return "foreign_key"

    text = str(orig).upper()
    if "UNIQUE CONSTRAINT" in text:
        return "unique"
    if "FOREIGN KEY CONSTRAINT" in text:
        return "foreign_key"
    return None


def translate_integrity_error(
    exc: IntegrityError,
    *,
    conflict: str = "Resource already exists.",
    foreign_key: Optional[AppError] = None,
    **context,
) -> AppError:
    """Turn a storage constraint violation into a typed error.

    `foreign_key` is the error to report for an FK violation; callers pass
    StillReferenced on delete and InvalidReference on create/update.
    """
    code = _constraint_code(exc)
    if code == "unique":
        return Conflict(conflict)
    if code == "foreign_key" and foreign_key is not None:
        return foreign_key
    logger.error("storage.integrity_error", error=str(exc.orig), **context)
    return Internal()


# ─── Response rendering ──────────────────────────────────


def field_errors(errors: list[dict]) -> dict[str, list[str]]:
    """Collapse pydantic error dicts into {field: [messages]}.

    The key is the last location element below the request part
    (body/query/path); errors that belong to the whole part are keyed
    by the part itself.
    """
    result: dict[str, list[str]] = {}
    for err in errors:
        loc = [str(p) for p in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path"):
            key = loc[-1] if len(loc) > 1 else loc[0]
        else:
            key = loc[-1] if loc else "body"
        result.setdefault(key, []).append(err.get("msg", "Invalid value"))
    return result


def _error_response(exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, Unauthenticated):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=headers
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("http.internal_error", path=request.url.path, error=exc.message)
    return _error_response(exc)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = field_errors(list(exc.errors()))
    logger.warning("validation.failed", path=request.url.path, errors=errors)
    return _error_response(ValidationFailed(errors))


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "http.unhandled_error", path=request.url.path, error_type=type(exc).__name__
    )
    return _error_response(Internal())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
