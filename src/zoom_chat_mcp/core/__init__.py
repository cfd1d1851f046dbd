"""Request layer: resilient execution and pagination over the Zoom REST API."""

from .executor import (
    RETRYABLE_STATUSES,
    ZoomApiClient,
    backoff_delay_ms,
    clean_query,
)
from .pagination import PaginatedCollector, guess_result_key, result_key_for

__all__ = [
    "RETRYABLE_STATUSES",
    "ZoomApiClient",
    "backoff_delay_ms",
    "clean_query",
    "PaginatedCollector",
    "guess_result_key",
    "result_key_for",
]
