"""
Resilient request execution against the Zoom REST API.

One call to ``execute`` is one logical API call. A single attempt counter
bounds everything that can go wrong: transport failures, retryable HTTP
statuses and the one-time reauthentication after a 401 on the first attempt
all consume from the same budget.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ..errors import (
    ApiError,
    NetworkError,
    Unauthorized,
    ZoomChatError,
    describe_transport_error,
    friendly_message,
    parse_error_payload,
)
from ..log_utils import (
    LogEvent,
    LogRecord,
    create_debug_request_info,
    debug,
    error,
    warning,
)
from ..oauth import TokenManager

RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})
BASE_BACKOFF_MS = 1000
MAX_BACKOFF_MS = 8000
DEFAULT_RETRIES = 3

# Methods that never carry a JSON body
BODYLESS_METHODS = frozenset({"GET", "DELETE"})


def backoff_delay_ms(attempt: int) -> int:
    """Exponential backoff for the given 1-based attempt number."""
    return min(BASE_BACKOFF_MS * 2 ** (attempt - 1), MAX_BACKOFF_MS)


def clean_query(query: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Drop parameters that are None or empty strings."""
    if not query:
        return {}
    return {key: value for key, value in query.items() if value is not None and value != ""}


class ZoomApiClient:
    """Authenticated, retrying client for the Zoom REST API."""

    def __init__(
        self,
        token_manager: TokenManager,
        base_url: str = "https://api.zoom.us/v2",
        timeout: Optional[httpx.Timeout] = None,
        proxy: Optional[str] = None,
        retries: int = DEFAULT_RETRIES,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.token_manager = token_manager
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or httpx.Timeout(30.0)
        self.proxy = proxy or None
        self.retries = retries
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings, token_manager: TokenManager) -> 'ZoomApiClient':
        return cls(
            token_manager=token_manager,
            base_url=settings.api_base_url,
            timeout=settings.http_timeout,
            proxy=settings.proxy,
            retries=int(settings.max_retries),
        )

    async def execute(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
        retries: Optional[int] = None,
    ) -> Any:
        """Perform one logical API call and return the parsed JSON body.

        Returns ``{}`` for 204 responses. Raises NetworkError, ApiError or
        Unauthorized (see ``zoom_chat_mcp.errors``).
        """
        method = method.upper()
        retries = max(1, retries if retries is not None else self.retries)
        url = f"{self.base_url}{path}"
        params = clean_query(query)
        json_body = body if body is not None and method not in BODYLESS_METHODS else None

        for attempt in range(1, retries + 1):
            access_token = await self.token_manager.get_access_token()
            headers = {
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }

            debug(LogRecord(
                event=LogEvent.API_REQUEST.value,
                message=f"{method} {path} (attempt {attempt}/{retries})",
                data={
                    "attempt": attempt,
                    "retries": retries,
                    "request": create_debug_request_info(url, headers, json_body),
                    "query": params,
                }
            ))

            try:
                response = await self._send(method, url, params, json_body, headers)
            except httpx.TransportError as e:
                if attempt < retries:
                    delay = backoff_delay_ms(attempt)
                    warning(LogRecord(
                        event=LogEvent.API_NETWORK_ERROR.value,
                        message=f"Network error on {method} {path}: {describe_transport_error(e)}. Retrying in {delay}ms",
                        data={"attempt": attempt, "retries": retries, "path": path, "delay_ms": delay}
                    ))
                    await self._sleep(delay / 1000)
                    continue
                error(LogRecord(
                    event=LogEvent.API_REQUEST_FAILED.value,
                    message=f"{method} {path} failed after {retries} attempt(s)",
                    data={"attempt": attempt, "retries": retries, "path": path}
                ), exc=e)
                raise NetworkError(retries, e) from e

            status = response.status_code

            # The server is the ground truth for token validity, so a first
            # attempt 401 renews without checking the local expiry estimate.
            if status == 401 and attempt == 1 and attempt < retries:
                warning(LogRecord(
                    event=LogEvent.API_REAUTH_TRIGGERED.value,
                    message=f"{method} {path} returned 401; renewing access token",
                    data={"attempt": attempt, "retries": retries, "path": path, "status_code": status}
                ))
                try:
                    await self.token_manager.force_refresh(rejected_token=access_token)
                except ZoomChatError as e:
                    raise Unauthorized(f"{friendly_message(401)}\n{e}") from e
                continue

            if status in RETRYABLE_STATUSES and attempt < retries:
                delay = backoff_delay_ms(attempt)
                warning(LogRecord(
                    event=LogEvent.API_RETRY_SCHEDULED.value,
                    message=f"HTTP {status} on {method} {path}. Retrying in {delay}ms",
                    data={"attempt": attempt, "retries": retries, "path": path,
                          "status_code": status, "delay_ms": delay}
                ))
                await self._sleep(delay / 1000)
                continue

            if not response.is_success:
                payload = parse_error_payload(response)
                error(LogRecord(
                    event=LogEvent.API_HTTP_ERROR_DETAILS.value,
                    message=f"Zoom returned HTTP {status} for {method} {path}",
                    data={"attempt": attempt, "path": path, "status_code": status,
                          "error_code": payload.code, "detail": payload.message}
                ))
                raise ApiError(status, payload.message, payload.code)

            if status == 204 or not response.content:
                return {}
            try:
                return response.json()
            except ValueError as e:
                preview = response.text[:200].strip()
                error(LogRecord(
                    event=LogEvent.API_HTTP_ERROR_DETAILS.value,
                    message=f"Zoom returned a non-JSON body for {method} {path}",
                    data={"attempt": attempt, "path": path, "status_code": status}
                ), exc=e)
                raise ApiError(status, f"Zoom returned a non-JSON body: {preview}") from e

        # Unreachable: the last attempt always returns or raises
        raise AssertionError("request loop exited without a result")

    async def _send(
        self,
        method: str,
        url: str,
        params: Dict[str, Any],
        json_body: Optional[Any],
        headers: Dict[str, str],
    ) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, proxy=self.proxy) as client:
            return await client.request(method, url, params=params, json=json_body, headers=headers)

    async def get(self, path: str, query: Optional[Dict[str, Any]] = None) -> Any:
        return await self.execute("GET", path, query=query)

    async def post(self, path: str, body: Optional[Any] = None) -> Any:
        return await self.execute("POST", path, body=body)
