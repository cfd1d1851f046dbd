"""Channel tools: list, inspect, create, members, invite."""

from typing import Annotated, List, Literal, Optional

from fastmcp import FastMCP
from pydantic import Field

from ..core import PaginatedCollector, ZoomApiClient
from .formatting import cap_page_size, format_channel, format_member, listing, to_json


def register_channel_tools(mcp: FastMCP, client: ZoomApiClient, collector: PaginatedCollector) -> None:

    @mcp.tool(
        name="zoom_list_channels",
        description=(
            "List all of the user's Zoom Team Chat channels. Returns the ID, name, "
            "type and member count of each channel."
        ),
    )
    async def zoom_list_channels(
        page_size: Annotated[int, Field(description="Items per page (max 50)")] = 50,
    ) -> str:
        channels = await collector.collect_all(
            "/chat/users/me/channels",
            result_key="channels",
            page_size=cap_page_size(page_size),
        )
        if not channels:
            return "No channels found."
        return listing(f"{len(channels)} channel(s) found", [format_channel(ch) for ch in channels])

    @mcp.tool(
        name="zoom_get_channel",
        description="Get the details of a Zoom Team Chat channel (name, type, settings, members).",
    )
    async def zoom_get_channel(
        channel_id: Annotated[str, Field(description="Channel ID (from zoom_list_channels)")],
    ) -> str:
        data = await client.execute("GET", f"/chat/channels/{channel_id}")
        return to_json(data)

    @mcp.tool(
        name="zoom_create_channel",
        description="Create a new Zoom Team Chat channel.",
    )
    async def zoom_create_channel(
        name: Annotated[str, Field(description="Channel name")],
        type: Annotated[Literal[1, 2, 3], Field(description="Type: 1=Public (default), 2=Private, 3=DM")] = 1,
        members: Annotated[Optional[List[str]], Field(description="Emails of members to add (optional)")] = None,
    ) -> str:
        body = {"name": name, "type": type}
        if members:
            body["members"] = [{"email": email} for email in members]

        data = await client.execute("POST", "/chat/users/me/channels", body=body)
        return f"Channel created!\nID: {data.get('id')}\nName: {data.get('name')}"

    @mcp.tool(
        name="zoom_list_channel_members",
        description="List the members of a Zoom Team Chat channel.",
    )
    async def zoom_list_channel_members(
        channel_id: Annotated[str, Field(description="Channel ID")],
    ) -> str:
        members = await collector.collect_all(
            f"/chat/channels/{channel_id}/members",
            result_key="members",
        )
        if not members:
            return "No members found in this channel."
        return listing(f"{len(members)} member(s)", [format_member(m) for m in members])

    @mcp.tool(
        name="zoom_invite_channel_members",
        description="Invite members to a Zoom Team Chat channel by email.",
    )
    async def zoom_invite_channel_members(
        channel_id: Annotated[str, Field(description="Channel ID")],
        members: Annotated[List[str], Field(description="Emails of the members to invite")],
    ) -> str:
        body = {"members": [{"email": email} for email in members]}
        await client.execute("POST", f"/chat/channels/{channel_id}/members", body=body)
        return f"{len(members)} member(s) invited to the channel."
