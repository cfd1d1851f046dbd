"""Logging handlers and utility functions."""

import enum
import logging
import traceback
from typing import Optional

from .formatters import LogError, LogRecord


class LogEvent(enum.Enum):
    # Credential lifecycle events
    TOKENS_LOADED = "tokens_loaded"
    TOKENS_SAVED = "tokens_saved"
    TOKENS_MISSING = "tokens_missing"
    TOKENS_CORRUPT = "tokens_corrupt"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_REFRESH_REQUEST = "token_refresh_request"
    TOKEN_REFRESHED = "token_refreshed"
    TOKEN_REFRESH_FAILED = "token_refresh_failed"
    TOKEN_REFRESH_SHARED = "token_refresh_shared"
    TOKEN_EXCHANGED = "token_exchanged"

    # Upstream request events
    API_REQUEST = "api_request"
    API_RETRY_SCHEDULED = "api_retry_scheduled"
    API_REAUTH_TRIGGERED = "api_reauth_triggered"
    API_REQUEST_FAILED = "api_request_failed"
    API_NETWORK_ERROR = "api_network_error"
    API_HTTP_ERROR_DETAILS = "api_http_error_details"

    # Pagination events
    PAGE_FETCHED = "page_fetched"
    PAGINATION_CAP_REACHED = "pagination_cap_reached"
    RESULT_KEY_GUESSED = "result_key_guessed"

    # Tool events
    TOOL_FAILED = "tool_failed"

    # Authorization flow events
    AUTH_FLOW_STARTED = "auth_flow_started"
    AUTH_CALLBACK_RECEIVED = "auth_callback_received"
    AUTH_CALLBACK_ERROR = "auth_callback_error"
    AUTH_FLOW_COMPLETED = "auth_flow_completed"

    # System events
    SERVER_STARTUP = "server_startup"


# Initialize logger - will be set up when module is initialized
_logger = None


def init_logger(app_name: str = "zoom-chat-mcp"):
    """Initialize the logger for this module."""
    global _logger
    _logger = logging.getLogger(app_name)


def _log(level: int, record: LogRecord, exc: Optional[Exception] = None) -> None:
    """Internal logging function."""
    if _logger is None:
        init_logger()

    if exc:
        record.error = LogError(
            name=type(exc).__name__,
            message=str(exc),
            stack_trace="".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            ),
            args=exc.args if hasattr(exc, "args") else tuple(),
        )
        if not record.message:
            record.message = str(exc) or "An unspecified error occurred"

    _logger.log(level=level, msg=record.message, extra={"log_record": record})


def debug(record: LogRecord):
    """Log a debug message."""
    _log(logging.DEBUG, record)


def info(record: LogRecord):
    """Log an info message."""
    _log(logging.INFO, record)


def warning(record: LogRecord, exc: Optional[Exception] = None):
    """Log a warning message."""
    _log(logging.WARNING, record, exc=exc)


def error(record: LogRecord, exc: Optional[Exception] = None):
    """Log an error message."""
    _log(logging.ERROR, record, exc=exc)

