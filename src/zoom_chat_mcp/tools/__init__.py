"""MCP tool handlers for Zoom Team Chat."""

from .channels import register_channel_tools
from .contacts import register_contact_tools
from .messages import register_message_tools
from .status import connection_status, register_status_tools

__all__ = [
    "connection_status",
    "register_channel_tools",
    "register_contact_tools",
    "register_message_tools",
    "register_status_tools",
]
