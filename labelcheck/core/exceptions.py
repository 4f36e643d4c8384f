"""
Exception hierarchy for the label compliance application.

Every exception carries a stable machine-readable code and the HTTP status
it maps to, so the API layer can render one uniform error envelope.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

import enum
from typing import Any


class ErrorKind(str, enum.Enum):
    """Machine-readable error codes exposed in error responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    AUTH_ERROR = "AUTH_ERROR"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    NO_CONTENT_RETURNED = "NO_CONTENT_RETURNED"
    RESPONSE_PARSE_ERROR = "RESPONSE_PARSE_ERROR"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class LabelCheckException(Exception):
    """Base exception for all label compliance application errors."""

    code: ErrorKind = ErrorKind.INTERNAL_ERROR
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class AuthenticationError(LabelCheckException):
    """Raised when no caller identity accompanies a request."""

    code = ErrorKind.AUTH_ERROR
    status_code = 401


class AuthorizationError(LabelCheckException):
    """Raised when the caller does not own the resource they are acting on."""

    code = ErrorKind.FORBIDDEN
    status_code = 403


class ValidationError(LabelCheckException):
    """Raised when input validation fails."""

    code = ErrorKind.VALIDATION_ERROR
    status_code = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class PayloadTooLargeError(ValidationError):
    """Raised when text or an upload exceeds its size limit."""

    code = ErrorKind.PAYLOAD_TOO_LARGE
    status_code = 413

    def __init__(
        self,
        message: str,
        limit: int,
        actual: int,
        field: str | None = None,
    ) -> None:
        """
        Initialize payload too large error.

        Args:
            message: Error message
            limit: Maximum accepted size
            actual: Size that was received
            field: Field that carried the payload
        """
        super().__init__(message, field=field, details={"limit": limit, "actual": actual})


class UnsupportedMediaTypeError(ValidationError):
    """Raised when an artifact is not an image, a PDF or text."""

    code = ErrorKind.UNSUPPORTED_MEDIA_TYPE
    status_code = 415

    def __init__(self, media_type: str | None) -> None:
        super().__init__(
            f"Unsupported media type: {media_type or 'unknown'}",
            field="file",
            details={"media_type": media_type},
        )


class NotFoundError(LabelCheckException):
    """Raised when a requested resource does not exist."""

    code = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(
        self,
        resource: str,
        resource_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize not found error.

        Args:
            resource: Kind of resource that is missing
            resource_id: Identifier that was looked up
            details: Additional context
        """
        details = details or {}
        if resource_id:
            details[f"{resource.lower()}_id"] = resource_id
        super().__init__(f"{resource} not found", details)


class SessionNotFoundError(NotFoundError):
    """Raised when an analysis session cannot be found."""

    def __init__(self, session_id: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("Session", str(session_id), details)


class ExtractionFailedError(LabelCheckException):
    """Raised when a PDF yields neither usable text nor a raster image."""

    code = ErrorKind.EXTRACTION_FAILED
    status_code = 422


class UpstreamError(LabelCheckException):
    """Base exception for completion service failures."""

    code = ErrorKind.UPSTREAM_ERROR
    status_code = 502


class UpstreamTimeoutError(UpstreamError):
    """Raised when a completion call exceeds its timeout."""

    code = ErrorKind.UPSTREAM_TIMEOUT
    status_code = 504
    retryable = True

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            f"Completion service did not respond within {timeout_seconds}s",
            {"timeout_seconds": timeout_seconds},
        )


class RateLimitedError(UpstreamError):
    """Raised when the completion service rejects a call with rate limiting."""

    code = ErrorKind.RATE_LIMITED
    status_code = 503
    retryable = True

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        """
        Initialize rate limited error.

        Args:
            message: Error message
            retry_after: Suggested wait in seconds before retrying
        """
        self.retry_after = retry_after
        details = {"retry_after": retry_after} if retry_after is not None else {}
        super().__init__(message, details)


class UpstreamUnavailableError(UpstreamError):
    """Raised on network or service errors from the completion service."""

    code = ErrorKind.UPSTREAM_UNAVAILABLE


class NoContentReturnedError(UpstreamError):
    """Raised when the completion service returns an empty response."""

    code = ErrorKind.NO_CONTENT_RETURNED


class ResponseParseError(LabelCheckException):
    """Raised when model output does not contain a conforming JSON report."""

    code = ErrorKind.RESPONSE_PARSE_ERROR
    status_code = 502

    def __init__(
        self,
        message: str,
        stage: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize response parse error.

        Args:
            message: Error message
            stage: Parsing stage that failed (extract, decode, validate)
            details: Additional context
        """
        details = details or {}
        details["stage"] = stage
        super().__init__(message, details)


class PersistenceError(LabelCheckException):
    """Raised when the relational store fails."""

    code = ErrorKind.PERSISTENCE_ERROR
    status_code = 500
