"""Logging functionality and custom formatters."""

from .formatters import (
    LogError,
    LogRecord,
    ColoredConsoleFormatter,
    JSONFormatter,
    mask_sensitive_data,
    mask_sensitive_string,
    token_preview,
    create_debug_request_info
)

from .handlers import (
    LogEvent,
    init_logger,
    debug,
    info,
    warning,
    error
)

__all__ = [
    "LogError",
    "LogRecord",
    "ColoredConsoleFormatter",
    "JSONFormatter",
    "LogEvent",
    "init_logger",
    "debug",
    "info",
    "warning",
    "error",
    "mask_sensitive_data",
    "mask_sensitive_string",
    "token_preview",
    "create_debug_request_info"
]
