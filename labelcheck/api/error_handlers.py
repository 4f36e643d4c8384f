"""
Exception handlers.

Render every failure as the uniform error envelope
{"error": str, "code": ErrorKind, "details": {...}}.

Dependencies: fastapi, labelcheck.core.exceptions
System role: Maps the exception hierarchy to HTTP responses
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from labelcheck.core.exceptions import (
    ErrorKind,
    LabelCheckException,
    RateLimitedError,
    UpstreamTimeoutError,
)
from labelcheck.models.common import ErrorResponse

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 30


def _retry_after(exc: LabelCheckException) -> str | None:
    if isinstance(exc, RateLimitedError):
        return str(exc.retry_after or DEFAULT_RETRY_AFTER_SECONDS)
    if isinstance(exc, UpstreamTimeoutError):
        return str(DEFAULT_RETRY_AFTER_SECONDS)
    return None


def _envelope(status_code: int, body: ErrorResponse, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=headers,
    )


async def labelcheck_exception_handler(request: Request, exc: LabelCheckException) -> JSONResponse:
    """Render a domain exception with its own code and status."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{__name__}:labelcheck_exception_handler - {exc.code.value}",
        extra={"path": request.url.path, "status_code": exc.status_code, "error_msg": exc.message},
    )

    headers = None
    retry_after = _retry_after(exc)
    if retry_after is not None:
        headers = {"Retry-After": retry_after}

    return _envelope(
        exc.status_code,
        ErrorResponse(error=exc.message, code=exc.code, details=exc.details or None),
        headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body/query validation failures as VALIDATION_ERROR."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return _envelope(
        400,
        ErrorResponse(error="Invalid request", code=ErrorKind.VALIDATION_ERROR, details={"errors": errors}),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and hide their internals."""
    logger.error(
        f"{__name__}:unhandled_exception_handler - Unexpected error",
        exc_info=exc,
        extra={"path": request.url.path, "error_type": type(exc).__name__},
    )
    return _envelope(
        500,
        ErrorResponse(error="Internal server error", code=ErrorKind.INTERNAL_ERROR),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error envelope handlers to an application."""
    app.add_exception_handler(LabelCheckException, labelcheck_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
