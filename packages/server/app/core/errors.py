"""
Typed application errors and the exception handlers that render them.

Every error response has the shape ``{"message": str, "code": int}`` where
``code`` mirrors the HTTP status.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = structlog.get_logger()


class IllustriousError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class BadRequestError(IllustriousError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(IllustriousError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(IllustriousError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Not Found!"):
        super().__init__(message)


class ConflictError(IllustriousError):
    status_code = status.HTTP_409_CONFLICT


class ServerError(IllustriousError):
    """Unexpected downstream failure, e.g. a rejected token exchange."""


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "code": status_code},
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def illustrious_error_handler(request: Request, exc: IllustriousError) -> JSONResponse:
    log_method = log.error if exc.status_code >= 500 else log.info
    log_method(
        "request.rejected",
        error=type(exc).__name__,
        message=exc.message,
        status=exc.status_code,
        method=request.method,
        path=request.url.path,
    )
    return error_response(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.info(
        "request.invalid",
        method=request.method,
        path=request.url.path,
        errors=exc.errors(),
    )
    return error_response(status.HTTP_400_BAD_REQUEST, "Bad Request!")


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error_response(exc.status_code, "Not Found!")
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "request.failed",
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )
    return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IllustriousError, illustrious_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
