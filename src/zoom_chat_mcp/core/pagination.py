"""
Collect every page of a Zoom listing endpoint.

Zoom does not name the result array consistently across endpoints, so the
array field is looked up in RESULT_KEYS by endpoint path. Unmapped endpoints
fall back to the first list-valued field of the response (``page_size``
excluded).
"""

import re
from typing import Any, Dict, List, Optional

from ..log_utils import LogEvent, LogRecord, debug, warning
from .executor import ZoomApiClient

MAX_PAGE_SIZE = 50
DEFAULT_MAX_PAGES = 10

# (path pattern, result key) for known listing endpoints
RESULT_KEYS = [
    (re.compile(r"^/chat/users/[^/]+/channels$"), "channels"),
    (re.compile(r"^/chat/channels/[^/]+/members$"), "members"),
    (re.compile(r"^/chat/users/[^/]+/contacts$"), "contacts"),
    (re.compile(r"^/contacts$"), "contacts"),
    (re.compile(r"^/chat/users/[^/]+/messages$"), "messages"),
    (re.compile(r"^/chat/users/[^/]+/messages/[^/]+/thread$"), "messages"),
    (re.compile(r"^/chat/users/[^/]+/sessions$"), "sessions"),
    (re.compile(r"^/chat/users/[^/]+/emoji$"), "emojis"),
]


def result_key_for(path: str) -> Optional[str]:
    for pattern, key in RESULT_KEYS:
        if pattern.match(path):
            return key
    return None


def guess_result_key(data: Dict[str, Any]) -> Optional[str]:
    """First list-valued field other than ``page_size``."""
    for key, value in data.items():
        if key != "page_size" and isinstance(value, list):
            return key
    return None


class PaginatedCollector:
    """Drives ZoomApiClient.execute across the pages of one listing."""

    def __init__(self, client: ZoomApiClient, max_pages: int = DEFAULT_MAX_PAGES,
                 page_size: int = MAX_PAGE_SIZE):
        self.client = client
        self.max_pages = max_pages
        self.page_size = min(page_size, MAX_PAGE_SIZE)

    async def collect_all(
        self,
        path: str,
        query: Optional[Dict[str, Any]] = None,
        result_key: Optional[str] = None,
        max_pages: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> List[Any]:
        """Return the items of every page, in response order.

        Stops when a response carries no ``next_page_token`` or after
        ``max_pages`` requests, whichever comes first.
        """
        max_pages = max(1, max_pages if max_pages is not None else self.max_pages)
        size = min(page_size, MAX_PAGE_SIZE) if page_size else self.page_size
        key = result_key or result_key_for(path)
        items: List[Any] = []
        page_token = ""
        pages = 0

        while True:
            page_query = dict(query or {})
            page_query["page_size"] = size
            if page_token:
                page_query["next_page_token"] = page_token

            data = await self.client.execute("GET", path, query=page_query)
            pages += 1

            page_key = key
            if page_key is None and isinstance(data, dict):
                page_key = guess_result_key(data)
                if page_key:
                    debug(LogRecord(
                        event=LogEvent.RESULT_KEY_GUESSED.value,
                        message=f"No result key mapped for {path}; using '{page_key}'"
                    ))

            page_items = data.get(page_key) if isinstance(data, dict) and page_key else None
            if page_items:
                items.extend(page_items)

            page_token = (data.get("next_page_token") or "") if isinstance(data, dict) else ""

            debug(LogRecord(
                event=LogEvent.PAGE_FETCHED.value,
                message=f"Fetched page {pages} of {path}",
                data={"path": path, "page": pages, "items": len(page_items or []),
                      "has_more": bool(page_token)}
            ))

            if not page_token:
                break
            if pages >= max_pages:
                warning(LogRecord(
                    event=LogEvent.PAGINATION_CAP_REACHED.value,
                    message=f"Stopped paginating {path} after {pages} pages; more results were available",
                    data={"path": path, "max_pages": max_pages}
                ))
                break

        return items
