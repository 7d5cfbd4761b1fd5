"""
Application errors and the single translator every handler funnels through.

Every failure leaves the API in the same envelope:
    {"success": false, "error": {"code", "message", "field"?, "details"?}, "timestamp", "path"}
"""

import logging
import re
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DataError, IntegrityError, NoResultFound, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api_response import error_response

logger = logging.getLogger(__name__)


class AppError(Exception):
    """An error with a stable code that is safe to show to API callers."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "INTERNAL_ERROR",
        field: Optional[str] = None,
        details: Any = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.field = field
        self.details = details
        self.headers = headers


def bad_request(message: str = "Bad request", field: Optional[str] = None, details: Any = None) -> AppError:
    return AppError(message, 400, "BAD_REQUEST", field, details)


def validation_error(message: str, field: Optional[str] = None, details: Any = None) -> AppError:
    return AppError(message, 400, "VALIDATION_ERROR", field, details)


def unauthorized(message: str = "Unauthorized", code: str = "UNAUTHORIZED") -> AppError:
    return AppError(message, 401, code)


def forbidden(message: str = "Forbidden", code: str = "INSUFFICIENT_PERMISSIONS") -> AppError:
    return AppError(message, 403, code)


def not_found(message: str = "Resource not found") -> AppError:
    return AppError(message, 404, "NOT_FOUND")


def conflict(message: str, field: Optional[str] = None, details: Any = None, code: str = "CONFLICT") -> AppError:
    return AppError(message, 409, code, field, details)


def payload_too_large(message: str, details: Any = None) -> AppError:
    return AppError(message, 413, "PAYLOAD_TOO_LARGE", details=details)


def rate_limited(message: str, retry_after: int, details: Any = None) -> AppError:
    return AppError(
        message, 429, "RATE_LIMIT_EXCEEDED", details=details, headers={"Retry-After": str(retry_after)}
    )


def internal(message: str = "Internal server error") -> AppError:
    return AppError(message, 500, "INTERNAL_ERROR")


# ============================================================================
# DATABASE ERROR TRANSLATION
# ============================================================================

# SQLite: "UNIQUE constraint failed: users.email"
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w., ]+)")
# PostgreSQL: "Key (email)=(a@b.com) already exists."
_PG_KEY = re.compile(r"Key \((?P<columns>[^)]+)\)=")


def _unique_field(message: str) -> str:
    match = _SQLITE_UNIQUE.search(message)
    if match:
        first = match.group("columns").split(",")[0].strip()
        return first.split(".")[-1]
    match = _PG_KEY.search(message)
    if match:
        return match.group("columns").split(",")[0].strip()
    return "field"


def _pgcode(exc: SQLAlchemyError) -> Optional[str]:
    return getattr(getattr(exc, "orig", None), "pgcode", None)


def translate_db_error(exc: Exception) -> AppError:
    """Map a SQLAlchemy/DBAPI failure onto a stable application error."""
    if isinstance(exc, (NoResultFound, StaleDataError)):
        return not_found("Record not found")

    if isinstance(exc, IntegrityError):
        message = str(exc.orig) if exc.orig is not None else str(exc)
        lowered = message.lower()
        code = _pgcode(exc)

        if code == "23505" or "unique" in lowered or "duplicate key" in lowered:
            field = _unique_field(message)
            return conflict(
                f"A record with this {field} already exists",
                field=field,
                details={"field": field, "constraint": "unique"},
            )
        if code == "23503" or "foreign key" in lowered:
            return bad_request(
                "Cannot perform this operation due to related records",
                details={"constraint": "foreign_key"},
            )
        if code == "23502" or "not null" in lowered:
            return bad_request("Required relation is missing", details={"constraint": "required_relation"})

    if isinstance(exc, DataError) and (_pgcode(exc) == "22003" or "out of range" in str(exc).lower()):
        return bad_request("Numeric value out of range", details={"constraint": "numeric_range"})

    if isinstance(exc, OperationalError) and _pgcode(exc) == "40001":
        return conflict("The record was modified concurrently, please retry")

    logger.error(f"❌ Unhandled database error: {type(exc).__name__}: {exc}")
    return internal("Database operation failed")


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


def _log_app_error(request: Request, error: AppError) -> None:
    if error.status_code >= 500:
        logger.error(
            f"Server error: {error.code} {error.message} - {request.method} {request.url.path}"
        )
    else:
        logger.warning(
            f"Client error: {error.status_code} {error.code} {error.message} - "
            f"{request.method} {request.url.path}"
        )


def _render(request: Request, error: AppError):
    _log_app_error(request, error)
    return error_response(
        error.code,
        error.message,
        status_code=error.status_code,
        field=error.field,
        details=error.details,
        path=request.url.path,
        headers=error.headers,
    )


def _validation_field(loc: tuple) -> str:
    if not loc:
        return ""
    source, *rest = loc
    path = ".".join(str(part) for part in rest)
    if source == "body":
        return path
    if source == "path":
        return f"params.{path}"
    return f"{source}.{path}" if path else str(source)


async def app_error_handler(request: Request, exc: AppError):
    return _render(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert request validation failures into 400 VALIDATION_ERROR with field details.

    A missing/invalid Authorization header is reported as 401, malformed JSON as BAD_REQUEST.
    """
    errors = exc.errors()
    for error in errors:
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            return _render(request, unauthorized("Access token is required", code="MISSING_TOKEN"))
        if error.get("type") == "json_invalid":
            return _render(request, bad_request("Invalid JSON format"))

    details = [
        {"field": _validation_field(tuple(error.get("loc", ()))), "message": error.get("msg", "")}
        for error in errors
    ]
    return _render(request, validation_error("Request validation failed", details=details))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        error = not_found("Endpoint not found" if exc.detail == "Not Found" else str(exc.detail))
    elif exc.status_code == 405:
        error = AppError("Method not allowed", 405, "METHOD_NOT_ALLOWED")
    elif exc.status_code == 401:
        error = unauthorized(str(exc.detail))
    elif exc.status_code == 403:
        error = forbidden(str(exc.detail))
    elif exc.status_code >= 500:
        error = internal()
    else:
        error = bad_request(str(exc.detail))
    error.headers = getattr(exc, "headers", None)
    return _render(request, error)


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    return _render(request, translate_db_error(exc))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response(
        "INTERNAL_ERROR", "Internal server error", status_code=500, path=request.url.path
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
