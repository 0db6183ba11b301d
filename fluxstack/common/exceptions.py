"""Custom exceptions and error-envelope handlers.

Every error leaves the API as::

    {"success": false, "error": {"code": "...", "message": "...", "details": ...}}
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from fluxstack.common.constants import ErrorCode

logger = logging.getLogger(__name__)

_STATUS_CODES: dict[int, ErrorCode] = {
    401: ErrorCode.unauthorized,
    403: ErrorCode.forbidden,
    404: ErrorCode.not_found,
    409: ErrorCode.conflict,
    429: ErrorCode.rate_limit_exceeded,
}


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → error envelope JSON."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class UnauthorizedException(AppException):
    """401 — no valid session."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(401, ErrorCode.unauthorized, message)


class ForbiddenException(AppException):
    """403 — authenticated but not allowed."""

    def __init__(
        self,
        message: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(403, ErrorCode.forbidden, message)


class NotFoundException(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str) -> None:
        super().__init__(404, ErrorCode.not_found, f"{entity_type} not found")


class ConflictError(AppException):
    """409 — unique-constraint / duplicate."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            409,
            ErrorCode.conflict,
            f"An entry with {field}='{value}' already exists.",
            details={field: [f"'{value}' is already in use."]},
        )


class ValidationException(AppException):
    """400 — business-logic validation failures."""

    def __init__(self, errors: list[dict[str, str]]) -> None:
        super().__init__(
            400,
            ErrorCode.validation_error,
            "Validation failed",
            details={"errors": errors},
        )


class AccountLockedException(AppException):
    """429 — too many failed sign-in attempts for one identifier."""

    def __init__(self, remaining_seconds: int) -> None:
        self.remaining_seconds = remaining_seconds
        super().__init__(
            429,
            ErrorCode.account_locked,
            f"Too many failed attempts. Try again in {remaining_seconds} seconds.",
        )


# ── Envelope builder ────────────────────────────────────────────────

def build_error_body(
    code: ErrorCode | str,
    message: str,
    details: Optional[Any] = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {
        "code": code.value if isinstance(code, ErrorCode) else code,
        "message": message,
    }
    if details:
        error["details"] = details
    return {"success": False, "error": error}


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_body(exc.code, exc.message, exc.details),
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    errors = []
    for err in exc.errors():
        loc = err.get("loc", ())
        # Drop the leading "body" / "query" / "path" segment
        path = ".".join(str(p) for p in loc[1:]) if len(loc) > 1 else ".".join(str(p) for p in loc)
        errors.append({"path": path, "message": err.get("msg", "Invalid value")})

    return JSONResponse(
        status_code=400,
        content=build_error_body(
            ErrorCode.validation_error, "Validation failed", {"errors": errors},
        ),
    )


async def _handle_http_exception(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    code = _STATUS_CODES.get(exc.status_code, ErrorCode.http_error)
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_body(code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _handle_rate_limit(
    request: Request,
    exc: RateLimitExceeded,
) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content=build_error_body(
            ErrorCode.rate_limit_exceeded, f"Rate limit exceeded: {exc.detail}",
        ),
    )


def _make_unhandled_handler(expose_details: bool):
    async def _handle_unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Request error: %s %s", request.method, request.url.path, exc_info=exc,
        )
        details = {"type": type(exc).__name__, "message": str(exc)} if expose_details else None
        return JSONResponse(
            status_code=500,
            content=build_error_body(
                ErrorCode.internal_server, "Internal server error", details,
            ),
        )

    return _handle_unhandled


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI, *, expose_details: bool = False) -> None:
    """Attach all custom exception handlers to the FastAPI app.

    ``expose_details`` adds the exception type and message to 500 bodies;
    keep it off in production.
    """
    app.add_exception_handler(AppException, _handle_app_exception)                    # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)        # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _handle_rate_limit)                   # type: ignore[arg-type]
    app.add_exception_handler(Exception, _make_unhandled_handler(expose_details))
