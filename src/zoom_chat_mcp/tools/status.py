"""Connection status / onboarding tool."""

from fastmcp import FastMCP

from ..core import ZoomApiClient
from ..errors import REAUTH_HINT, ZoomChatError
from ..log_utils import LogEvent, LogRecord, warning
from ..oauth import onboarding_message
from .formatting import format_user_summary


async def connection_status(client: ZoomApiClient) -> str:
    """Onboarding text when unauthorized, otherwise a summary of the signed-in user."""
    token_manager = client.token_manager
    if not token_manager.is_authorized():
        return onboarding_message(token_manager.store.path)

    try:
        user = await client.get("/users/me")
    except ZoomChatError as e:
        warning(LogRecord(
            event=LogEvent.TOOL_FAILED.value,
            message="Stored tokens found but the status call failed"
        ), exc=e)
        return f"Tokens found but the connection failed: {e}\n\n{REAUTH_HINT}"

    return format_user_summary(user)


def register_status_tools(mcp: FastMCP, client: ZoomApiClient) -> None:

    @mcp.tool(
        name="zoom_status",
        description=(
            "Check the Zoom Team Chat connection status. Shows whether the user is "
            "authorized and the account details."
        ),
    )
    async def zoom_status() -> str:
        return await connection_status(client)
