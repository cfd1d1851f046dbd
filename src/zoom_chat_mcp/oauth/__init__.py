"""
OAuth credential handling for the Zoom Team Chat MCP server.

- CredentialSet: the persisted token bundle
- CredentialStore: durable single-record storage
- TokenManager: cache, expiry and renewal
- authorize: one-time interactive authorization flow
"""

from .credentials import CredentialSet
from .store import CredentialStore, onboarding_message
from .token_manager import TokenManager

__all__ = [
    "CredentialSet",
    "CredentialStore",
    "TokenManager",
    "onboarding_message",
]
