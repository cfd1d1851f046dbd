"""
Zoom Team Chat MCP server.

``create_server`` builds the credential store, token manager and API client
exactly once and hands them to every tool group.
"""

from typing import Optional

from fastmcp import FastMCP

from .config import Settings
from .core import PaginatedCollector, ZoomApiClient
from .log_utils import LogEvent, LogRecord, info
from .oauth import CredentialStore, TokenManager
from .tools import (
    register_channel_tools,
    register_contact_tools,
    register_message_tools,
    register_status_tools,
)

INSTRUCTIONS = (
    "Zoom Team Chat tools: list, read and send channel and direct messages, manage "
    "channels and members, and look up contacts. Call zoom_status first: if the user "
    "is not authorized it returns the one-time setup steps."
)


def create_server(settings: Settings, api_client: Optional[ZoomApiClient] = None) -> FastMCP:
    """Create the MCP server with all Zoom Team Chat tools registered."""
    if api_client is None:
        token_manager = TokenManager.from_settings(settings, CredentialStore(settings.tokens_file))
        api_client = ZoomApiClient.from_settings(settings, token_manager)
    collector = PaginatedCollector(
        api_client,
        max_pages=int(settings.max_pages),
        page_size=int(settings.page_size),
    )

    mcp = FastMCP(name=settings.app_name, instructions=INSTRUCTIONS)

    register_status_tools(mcp, api_client)
    register_channel_tools(mcp, api_client, collector)
    register_message_tools(mcp, api_client)
    register_contact_tools(mcp, api_client, collector)

    info(LogRecord(
        event=LogEvent.SERVER_STARTUP.value,
        message=f"{settings.app_name} v{settings.app_version} ready",
        data={
            "tokens_path": str(settings.tokens_file),
            "api_base_url": settings.api_base_url,
            "authorized": api_client.token_manager.is_authorized(),
        }
    ))
    return mcp
