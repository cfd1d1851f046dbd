"""
One-time interactive authorization.

Opens the Zoom consent page in the system browser and runs a short-lived
local HTTP listener on the redirect URI to capture the authorization code,
which is exchanged for the first credential set and persisted the same way a
renewal is.
"""

import asyncio
import html
import webbrowser
from typing import Callable, Optional
from urllib.parse import urlencode, urlparse

import fastapi
import uvicorn
from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from ..errors import Unauthorized, ZoomChatError
from ..log_utils import LogEvent, LogRecord, error, info
from .credentials import CredentialSet
from .token_manager import TokenManager

# Granular scopes needed by the Team Chat tools
SCOPES = [
    # Channels
    "team_chat:read:list_user_channels",
    "team_chat:read:channel",
    "team_chat:read:list_members",
    "team_chat:write:user_channel",
    "team_chat:write:members",
    # Messages
    "team_chat:read:list_user_messages",
    "team_chat:read:user_message",
    "team_chat:read:thread_message",
    "team_chat:write:user_message",
    "team_chat:update:user_message",
    "team_chat:delete:user_message",
    "team_chat:update:message_emoji",
    # Contacts and sessions
    "team_chat:read:list_contacts",
    "team_chat:read:contact",
    "team_chat:read:list_user_sessions",
    # Custom emojis
    "team_chat:read:list_custom_emojis",
    # User
    "user:read:user",
    "user:read:email",
]

SUCCESS_PAGE = (
    "<html><body style='font-family:sans-serif;text-align:center;padding:60px'>"
    "<h1 style='color:#2D8CFF'>&#10004; Zoom MCP authorized!</h1>"
    "<p>Tokens saved. You can close this tab.</p>"
    "</body></html>"
)


def build_authorize_url(authorize_url: str, client_id: str, redirect_uri: str) -> str:
    params = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": " ".join(SCOPES),
    }
    return f"{authorize_url}?{urlencode(params)}"


def _error_page(title: str, detail: str) -> str:
    return f"<h1>{html.escape(title)}</h1><p>{html.escape(detail)}</p>"


def create_callback_router(
    token_manager: TokenManager,
    redirect_uri: str,
    outcome: "asyncio.Future[CredentialSet]",
) -> APIRouter:
    """Router serving the OAuth redirect path; resolves ``outcome`` once."""
    router = APIRouter()
    callback_path = urlparse(redirect_uri).path or "/callback"

    def _settle(result: Optional[CredentialSet] = None, exc: Optional[Exception] = None):
        if outcome.done():
            return
        if exc is not None:
            outcome.set_exception(exc)
        else:
            outcome.set_result(result)

    @router.get(callback_path)
    async def oauth_callback(code: Optional[str] = None, error_code: Optional[str] = fastapi.Query(None, alias="error")):
        if error_code:
            error(LogRecord(
                event=LogEvent.AUTH_CALLBACK_ERROR.value,
                message=f"Authorization denied: {error_code}"
            ))
            _settle(exc=Unauthorized(f"Zoom authorization failed: {error_code}"))
            return HTMLResponse(_error_page("Authorization error", error_code), status_code=400)

        if not code:
            _settle(exc=Unauthorized("Zoom redirected back without an authorization code."))
            return HTMLResponse(_error_page("Error", "Authorization code not received."), status_code=400)

        info(LogRecord(
            event=LogEvent.AUTH_CALLBACK_RECEIVED.value,
            message="Authorization code received; exchanging for tokens"
        ))
        try:
            credentials = await token_manager.exchange_code(code, redirect_uri)
        except ZoomChatError as e:
            _settle(exc=e)
            return HTMLResponse(_error_page("Error", str(e)), status_code=500)

        _settle(result=credentials)
        return HTMLResponse(SUCCESS_PAGE)

    return router


def create_callback_app(
    token_manager: TokenManager,
    redirect_uri: str,
    outcome: "asyncio.Future[CredentialSet]",
) -> fastapi.FastAPI:
    app = fastapi.FastAPI(title="Zoom MCP authorization callback", docs_url=None, redoc_url=None, openapi_url=None)
    app.include_router(create_callback_router(token_manager, redirect_uri, outcome))
    return app


async def run_authorization_flow(
    settings,
    token_manager: TokenManager,
    open_browser: Callable[[str], object] = webbrowser.open,
    announce: Callable[[str], object] = print,
) -> CredentialSet:
    """Run the browser consent flow and return the persisted credential set."""
    settings.require_client_credentials()

    redirect = urlparse(settings.redirect_uri)
    host = redirect.hostname or "localhost"
    port = redirect.port or 80
    auth_url = build_authorize_url(settings.authorize_url, settings.client_id, settings.redirect_uri)

    loop = asyncio.get_running_loop()
    outcome: asyncio.Future = loop.create_future()
    app = create_callback_app(token_manager, settings.redirect_uri, outcome)
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning", lifespan="off"))
    serve_task = asyncio.create_task(server.serve())

    info(LogRecord(
        event=LogEvent.AUTH_FLOW_STARTED.value,
        message=f"Callback listener on {settings.redirect_uri}",
        data={"scopes": SCOPES}
    ))
    announce("Opening the browser for Zoom authorization...")
    announce(f"If the browser does not open, visit:\n{auth_url}\n")
    open_browser(auth_url)

    try:
        await asyncio.wait(
            {outcome, serve_task},
            timeout=float(settings.auth_timeout),
            return_when=asyncio.FIRST_COMPLETED,
        )
        if not outcome.done():
            if serve_task.done():
                raise Unauthorized(
                    f"Could not start the callback listener on {host}:{port}. "
                    "Free the port or set ZOOM_REDIRECT_URI to another local address registered in the Zoom app."
                )
            raise Unauthorized(
                f"No authorization callback received within {int(float(settings.auth_timeout))}s. "
                "Run `zoom-chat-mcp auth` again."
            )
        credentials = outcome.result()
    finally:
        if not serve_task.done():
            # Give the browser time to receive the result page
            await asyncio.sleep(1)
            server.should_exit = True
            await serve_task

    info(LogRecord(
        event=LogEvent.AUTH_FLOW_COMPLETED.value,
        message="Authorization completed",
        data={"scope": credentials.scope}
    ))
    return credentials
