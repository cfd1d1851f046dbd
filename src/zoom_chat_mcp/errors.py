"""Error taxonomy and the translation boundary for upstream error payloads.

Every failure that leaves the request layer is one of the classes below and
always carries an actionable, non-empty message. Parsing of Zoom error bodies
and any text matching on them happens only in this module.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional

import httpx

REAUTH_HINT = "Run `zoom-chat-mcp auth` again to reauthorize."

FRIENDLY_MESSAGES = {
    400: "Invalid request. Check the parameters.",
    401: "Access token expired or invalid. " + REAUTH_HINT,
    403: "Permission denied. Check the app scopes in the Zoom App Marketplace.",
    404: "Resource not found in Zoom.",
    429: "Zoom rate limit reached. Try again in a few seconds.",
    500: "Internal Zoom server error.",
    502: "Zoom is temporarily unavailable.",
    503: "Zoom is under maintenance.",
}

# Fragments Zoom uses when a thread reply points at something that is not a
# main (top-level) message. Zoom does not document a stable code for this.
THREAD_REPLY_MARKERS = ("main message", "reply_main_message_id")


class ZoomChatError(Exception):
    """Base class for all classified errors."""


class ConfigurationError(ZoomChatError):
    """Required configuration is missing or invalid."""


class Unauthorized(ZoomChatError):
    """No usable credential: nothing stored, or renewal was rejected."""


class ReauthRequired(Unauthorized):
    """The authorization server rejected the refresh token."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NetworkError(ZoomChatError):
    """Transport failure that exhausted the retry budget."""

    def __init__(self, attempts: int, cause: Exception):
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Connection to Zoom failed after {attempts} attempt(s): {describe_transport_error(cause)}"
        )


class ApiError(ZoomChatError):
    """Non-success HTTP response from the Zoom API."""

    def __init__(self, status_code: int, detail: str = "", error_code: Optional[Any] = None):
        self.status_code = status_code
        self.detail = detail
        self.error_code = error_code
        super().__init__(f"{friendly_message(status_code)} {detail}".strip())


@dataclass
class ErrorPayload:
    """Machine-readable view of an upstream error body."""

    code: Optional[Any] = None
    message: str = ""


def friendly_message(status_code: int) -> str:
    return FRIENDLY_MESSAGES.get(status_code, f"Zoom API error {status_code}.")


def describe_transport_error(exc: Exception) -> str:
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


def parse_error_payload(response: httpx.Response) -> ErrorPayload:
    """Extract a stable error code and message from an error response.

    Understands Zoom API bodies (``{"code": 124, "message": ...}``), OAuth
    bodies (``{"error": ..., "error_description"/"reason": ...}``) and nested
    ``{"error": {"code", "message"}}`` objects; anything else is returned as
    raw text.
    """
    text = response.text
    try:
        body = json.loads(text) if text else None
    except ValueError:
        body = None

    if not isinstance(body, dict):
        return ErrorPayload(message=text.strip())

    nested = body.get("error")
    if isinstance(nested, dict):
        return ErrorPayload(
            code=nested.get("code"),
            message=str(nested.get("message") or json.dumps(nested)),
        )

    code = body.get("code")
    message = body.get("message") or body.get("error_description") or body.get("reason")
    if isinstance(nested, str):
        if code is None:
            code = nested
        message = message or nested

    if not message:
        message = json.dumps(body)
    return ErrorPayload(code=code, message=str(message))


def is_thread_reply_error(exc: Exception) -> bool:
    """True when an ApiError says the thread reply target is invalid."""
    if not isinstance(exc, ApiError) or exc.status_code not in (400, 404):
        return False
    detail = exc.detail.lower()
    return any(marker in detail for marker in THREAD_REPLY_MARKERS)
