"""
Logging utilities for structured context.

Context values are flattened to short strings before they reach the log
record: uploads show as their size, model output is truncated, enums and
UUIDs render as their plain value.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import enum
import logging
import uuid
from typing import Any

from labelcheck.core.exceptions import LabelCheckException

MAX_LOG_VALUE_LENGTH = 500


def safe_log_value(value: Any, max_length: int = MAX_LOG_VALUE_LENGTH) -> str:
    """
    Render a context value for a log record.

    Args:
        value: Value to render
        max_length: Length after which strings are truncated

    Returns:
        str: Log-safe representation
    """
    if value is None:
        return "None"
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (list, tuple, set)):
        items = ", ".join(safe_log_value(item, 50) for item in list(value)[:5])
        suffix = ", ..." if len(value) > 5 else ""
        return f"[{items}{suffix}]"
    if isinstance(value, dict):
        return f"dict({len(value)} keys)"

    text = value if isinstance(value, str) else repr(value)
    if len(text) > max_length:
        return f"{text[:max_length]}... ({len(text)} chars)"
    return text


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context,
) -> None:
    """
    Log a message with structured context.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Arbitrary key-value context
    """
    logger.log(level, message, extra={key: safe_log_value(val) for key, val in context.items()})


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    **context,
) -> None:
    """
    Log an exception with its traceback and context.

    Application exceptions also contribute their error code.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Additional context
    """
    extra = {key: safe_log_value(val) for key, val in context.items()}
    extra["error_type"] = type(exc).__name__
    if isinstance(exc, LabelCheckException):
        extra["error_code"] = exc.code.value
        extra["error_msg"] = safe_log_value(exc.message)
    else:
        extra["error_msg"] = safe_log_value(str(exc))
    logger.error(message, exc_info=exc, extra=extra)
