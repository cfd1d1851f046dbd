"""Text rendering of Zoom Team Chat records for tool results."""

import json
from typing import Any, Dict, Iterable, List

MAX_PAGE_SIZE = 50

CHANNEL_TYPES = {1: "Public", 2: "Private", 3: "DM"}
USER_TYPES = {1: "Basic", 2: "Licensed"}


def cap_page_size(page_size: int) -> int:
    return max(1, min(int(page_size), MAX_PAGE_SIZE))


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def display_name(record: Dict[str, Any]) -> str:
    first, last = record.get("first_name"), record.get("last_name")
    if first and last:
        return f"{first} {last}"
    return record.get("name") or record.get("email") or ""


def channel_type_label(channel_type: Any) -> str:
    return CHANNEL_TYPES.get(channel_type, f"Type {channel_type}")


def user_type_label(user_type: Any) -> str:
    return USER_TYPES.get(user_type, f"Type {user_type}")


def format_channel(channel: Dict[str, Any]) -> Dict[str, Any]:
    settings = channel.get("channel_settings") or {}
    return {
        "id": channel.get("id"),
        "name": channel.get("name"),
        "type": channel_type_label(channel.get("type")),
        "members": settings.get("members_count", "N/A"),
    }


def format_member(member: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": member.get("id"),
        "email": member.get("email"),
        "name": display_name(member),
        "role": member.get("role"),
    }


def format_message(message: Dict[str, Any], with_timestamp: bool = True) -> Dict[str, Any]:
    formatted = {
        "id": message.get("id"),
        "sender": message.get("sender") or message.get("sender_display_name") or "N/A",
        "message": message.get("message") or "",
        "date_time": message.get("date_time") or "",
    }
    if with_timestamp:
        formatted["timestamp"] = message.get("timestamp") or ""
    return formatted


def format_contact(contact: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": contact.get("id"),
        "email": contact.get("email"),
        "name": display_name(contact),
        "presence_status": contact.get("presence_status") or "N/A",
    }


def format_session(session: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "session_id": session.get("session_id"),
        "name": session.get("name") or "N/A",
        "type": session.get("type") or "N/A",
        "last_message_sent_time": session.get("last_message_sent_time") or "N/A",
    }


def listing(header: str, records: Iterable[Dict[str, Any]]) -> str:
    """Summary line followed by the records as pretty JSON."""
    records: List[Dict[str, Any]] = list(records)
    return f"{header}:\n\n{to_json(records)}"


def format_user_summary(user: Dict[str, Any]) -> str:
    return (
        "Zoom connected!\n\n"
        f"**User:** {user.get('first_name') or ''} {user.get('last_name') or ''}\n"
        f"**Email:** {user.get('email') or 'N/A'}\n"
        f"**Account:** {user.get('account_id') or 'N/A'}\n"
        f"**Type:** {user_type_label(user.get('type'))}\n"
        f"**Status:** {user.get('status') or 'N/A'}"
    )
