"""Contact and session tools."""

from typing import Annotated, Literal, Optional

from fastmcp import FastMCP
from pydantic import Field

from ..core import PaginatedCollector, ZoomApiClient
from .formatting import cap_page_size, format_contact, format_session, listing


def register_contact_tools(mcp: FastMCP, client: ZoomApiClient, collector: PaginatedCollector) -> None:

    @mcp.tool(
        name="zoom_list_contacts",
        description="List the user's Zoom Team Chat contacts.",
    )
    async def zoom_list_contacts(
        type: Annotated[
            Literal["company", "external"],
            Field(description="Type: company (same organization, default) or external"),
        ] = "company",
        page_size: Annotated[int, Field(description="Items per page (max 50)")] = 50,
    ) -> str:
        contacts = await collector.collect_all(
            "/chat/users/me/contacts",
            query={"type": type},
            result_key="contacts",
            page_size=cap_page_size(page_size),
        )
        if not contacts:
            return "No contacts found."
        return listing(f"{len(contacts)} contact(s)", [format_contact(c) for c in contacts])

    @mcp.tool(
        name="zoom_search_contacts",
        description="Search company contacts in Zoom by name or email.",
    )
    async def zoom_search_contacts(
        search_key: Annotated[str, Field(description="Search term (name or email)")],
        page_size: Annotated[int, Field(description="Number of results (max 50)")] = 20,
    ) -> str:
        data = await client.execute("GET", "/contacts", query={
            "search_key": search_key,
            "type": "company",
            "page_size": cap_page_size(page_size),
        })
        contacts = data.get("contacts") or []
        if not contacts:
            return f'No contacts found for "{search_key}".'
        return listing(
            f'{len(contacts)} result(s) for "{search_key}"',
            [format_contact(c) for c in contacts],
        )

    @mcp.tool(
        name="zoom_list_sessions",
        description=(
            "List recent Zoom Team Chat sessions/conversations "
            "(channels and DMs with recent activity)."
        ),
    )
    async def zoom_list_sessions(
        from_date: Annotated[Optional[str], Field(description="Start date (YYYY-MM-DD)")] = None,
        to_date: Annotated[Optional[str], Field(description="End date (YYYY-MM-DD)")] = None,
    ) -> str:
        data = await client.execute("GET", "/chat/users/me/sessions", query={"from": from_date, "to": to_date})
        sessions = data.get("sessions") or []
        if not sessions:
            return "No recent sessions found."
        return listing(f"{len(sessions)} recent session(s)", [format_session(s) for s in sessions])
