"""
FastAPI middleware for observability.

Correlation ID and request logging middleware. Completion logs carry the
matched route and the session id of each call.

Dependencies: fastapi, labelcheck.observability
System role: Request/response observability injection
"""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from labelcheck.observability.correlation import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

USER_HEADER = "x-user-id"
# Completion records at or above this duration are logged as warnings
SLOW_REQUEST_MS = 30_000


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def _content_length(request: Request) -> int | None:
    value = request.headers.get("content-length")
    return int(value) if value and value.isdigit() else None


def _route_fields(request: Request) -> dict[str, str | None]:
    """Matched route template and session id, available once routing has run."""
    route = request.scope.get("route")
    path_params = request.scope.get("path_params") or {}
    session_id = path_params.get("session_id") or request.query_params.get("session_id")
    return {
        "route": getattr(route, "path", None),
        "session_id": str(session_id) if session_id else None,
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each API request with its session context.

    Path parameters are only known after routing, so the completion record
    carries the matched route template and session id while the start
    record carries what the raw request shows.
    """

    async def dispatch(self, request: Request, call_next):
        """
        Log request start and completion with timing.

        Args:
            request: FastAPI request
            call_next: Next middleware in chain

        Returns:
            Response: Response object
        """
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        request_fields = {
            "method": method,
            "path": path,
            "has_caller": USER_HEADER in request.headers,
            "content_length": _content_length(request),
        }

        logger.info(f"{__name__}:dispatch - {method} {path}", extra=request_fields)

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"{__name__}:dispatch - {method} {path} - Exception",
                extra={
                    **request_fields,
                    **_route_fields(request),
                    "duration_ms": _elapsed_ms(start),
                    "error_type": type(e).__name__,
                    "error_msg": str(e),
                },
            )
            raise

        duration_ms = _elapsed_ms(start)
        level = logging.WARNING if duration_ms >= SLOW_REQUEST_MS else logging.INFO
        logger.log(
            level,
            f"{__name__}:dispatch - {method} {path} - {response.status_code}",
            extra={
                **request_fields,
                **_route_fields(request),
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "slow": duration_ms >= SLOW_REQUEST_MS,
            },
        )
        return response


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Middleware for correlation ID injection."""

    async def dispatch(self, request: Request, call_next):
        """
        Inject correlation ID into request context.

        Args:
            request: FastAPI request
            call_next: Next middleware in chain

        Returns:
            Response: Response with correlation ID header
        """
        correlation_id = set_correlation_id(request.headers.get("X-Correlation-ID"))
        try:
            response: Response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response
