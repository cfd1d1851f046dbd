"""Message tools: send, list, get, update, delete, react, thread replies."""

from typing import Annotated, Any, Dict, Literal, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from ..core import ZoomApiClient
from ..errors import ApiError, is_thread_reply_error
from .formatting import cap_page_size, format_message, listing, to_json

MISSING_TARGET = "Error: provide to_channel (channel ID) or to_contact (email) as the destination."

ChannelId = Annotated[Optional[str], Field(description="ID of the channel holding the message")]
ContactEmail = Annotated[Optional[str], Field(description="Contact email (for DMs)")]


def conversation_target(to_channel: Optional[str], to_contact: Optional[str]) -> Dict[str, Any]:
    """Channel/contact selector shared by the message endpoints."""
    target = {}
    if to_channel:
        target["to_channel"] = to_channel
    if to_contact:
        target["to_contact"] = to_contact
    return target


def register_message_tools(mcp: FastMCP, client: ZoomApiClient) -> None:

    @mcp.tool(
        name="zoom_send_message",
        description=(
            "Send a Zoom Team Chat message, either to a channel (to_channel) or as a DM "
            "to a contact (to_contact). For DMs use the recipient's email."
        ),
    )
    async def zoom_send_message(
        message: Annotated[str, Field(description="Message text")],
        to_channel: Annotated[Optional[str], Field(description="Destination channel ID (for channel messages)")] = None,
        to_contact: Annotated[Optional[str], Field(description="Destination contact email (for DMs)")] = None,
        reply_main_message_id: Annotated[
            Optional[str], Field(description="ID of the message to reply to in a thread (optional)")
        ] = None,
    ) -> str:
        if not to_channel and not to_contact:
            return MISSING_TARGET

        body = {"message": message, **conversation_target(to_channel, to_contact)}
        if reply_main_message_id:
            body["reply_main_message_id"] = reply_main_message_id

        try:
            data = await client.execute("POST", "/chat/users/me/messages", body=body)
        except ApiError as e:
            if reply_main_message_id and is_thread_reply_error(e):
                raise ToolError(
                    f"Could not reply in thread: message {reply_main_message_id} is not a main "
                    "(top-level) message of this conversation. Replies must target the first "
                    "message of a thread; use zoom_list_messages to find its ID. "
                    f"Zoom said: {e.detail}"
                ) from e
            raise

        destination = f"channel {to_channel}" if to_channel else f"contact {to_contact}"
        result = f"Message sent to {destination}."
        if data.get("id"):
            result += f" ID: {data['id']}"
        return result

    @mcp.tool(
        name="zoom_list_messages",
        description=(
            "List messages of a Zoom Team Chat channel or DM conversation. "
            "Returns the most recent messages."
        ),
    )
    async def zoom_list_messages(
        to_channel: Annotated[Optional[str], Field(description="Channel ID to list messages from")] = None,
        to_contact: Annotated[Optional[str], Field(description="Contact email to list DMs with")] = None,
        date: Annotated[Optional[str], Field(description="Date filter (YYYY-MM-DD). Default: today.")] = None,
        page_size: Annotated[int, Field(description="Number of messages (max 50)")] = 50,
        include_deleted_and_edited_message: Annotated[
            Optional[bool], Field(description="Include edited/deleted messages")
        ] = None,
    ) -> str:
        if not to_channel and not to_contact:
            return MISSING_TARGET

        query = {"page_size": cap_page_size(page_size), **conversation_target(to_channel, to_contact)}
        if date:
            query["date"] = date
        if include_deleted_and_edited_message:
            query["include_deleted_and_edited_message"] = True

        data = await client.execute("GET", "/chat/users/me/messages", query=query)
        messages = data.get("messages") or []
        if not messages:
            return "No messages found."
        return listing(f"{len(messages)} message(s)", [format_message(m) for m in messages])

    @mcp.tool(
        name="zoom_get_message",
        description="Get the details of a specific Zoom Team Chat message.",
    )
    async def zoom_get_message(
        message_id: Annotated[str, Field(description="Message ID")],
        to_channel: ChannelId = None,
        to_contact: ContactEmail = None,
    ) -> str:
        data = await client.execute(
            "GET",
            f"/chat/users/me/messages/{message_id}",
            query=conversation_target(to_channel, to_contact),
        )
        return to_json(data)

    @mcp.tool(
        name="zoom_update_message",
        description="Edit a message that was already sent in Zoom Team Chat.",
    )
    async def zoom_update_message(
        message_id: Annotated[str, Field(description="ID of the message to edit")],
        message: Annotated[str, Field(description="New message text")],
        to_channel: ChannelId = None,
        to_contact: ContactEmail = None,
    ) -> str:
        body = {"message": message, **conversation_target(to_channel, to_contact)}
        await client.execute("PUT", f"/chat/users/me/messages/{message_id}", body=body)
        return f"Message {message_id} updated."

    @mcp.tool(
        name="zoom_delete_message",
        description="Delete a Zoom Team Chat message.",
    )
    async def zoom_delete_message(
        message_id: Annotated[str, Field(description="ID of the message to delete")],
        to_channel: ChannelId = None,
        to_contact: ContactEmail = None,
    ) -> str:
        await client.execute(
            "DELETE",
            f"/chat/users/me/messages/{message_id}",
            query=conversation_target(to_channel, to_contact),
        )
        return f"Message {message_id} deleted."

    @mcp.tool(
        name="zoom_react_message",
        description="Add or remove an emoji reaction on a Zoom Team Chat message.",
    )
    async def zoom_react_message(
        message_id: Annotated[str, Field(description="Message ID")],
        emoji: Annotated[str, Field(description="Emoji to react with (e.g. 'thumbsup', 'heart', '+1' or a Unicode emoji)")],
        action: Annotated[Literal["add", "remove"], Field(description="Action: add (default) or remove")] = "add",
        to_channel: Annotated[Optional[str], Field(description="Channel ID")] = None,
        to_contact: ContactEmail = None,
    ) -> str:
        body = {"emoji": emoji, "action": action, **conversation_target(to_channel, to_contact)}
        await client.execute("PATCH", f"/chat/users/me/messages/{message_id}/emoji_reactions", body=body)
        action_text = "added to" if action == "add" else "removed from"
        return f"Reaction {emoji} {action_text} message {message_id}."

    @mcp.tool(
        name="zoom_list_thread",
        description="List the replies of a message thread in Zoom Team Chat.",
    )
    async def zoom_list_thread(
        message_id: Annotated[str, Field(description="ID of the thread's main message")],
        to_channel: Annotated[Optional[str], Field(description="Channel ID")] = None,
        to_contact: ContactEmail = None,
        page_size: Annotated[int, Field(description="Number of replies (max 50)")] = 50,
    ) -> str:
        query = {"page_size": cap_page_size(page_size), **conversation_target(to_channel, to_contact)}
        data = await client.execute("GET", f"/chat/users/me/messages/{message_id}/thread", query=query)
        replies = data.get("messages") or []
        if not replies:
            return "No replies found in this thread."
        return listing(
            f"{len(replies)} reply(ies) in the thread",
            [format_message(m, with_timestamp=False) for m in replies],
        )
