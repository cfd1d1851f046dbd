"""OAuth credential set persisted between runs."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

DEFAULT_REFRESH_MARGIN_SECONDS = 60


@dataclass
class CredentialSet:
    """Zoom OAuth token bundle.

    ``created_at`` is epoch milliseconds at acquisition time and
    ``expires_in`` is the lifetime in seconds, so the expiry instant is
    ``created_at + expires_in * 1000``.
    """
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    scope: str = ""
    expires_in: Optional[int] = None
    created_at: Optional[int] = None

    @property
    def expires_at(self) -> Optional[int]:
        """Expiry instant in epoch milliseconds, if known."""
        if self.created_at is None or self.expires_in is None:
            return None
        return self.created_at + self.expires_in * 1000

    @property
    def scopes(self):
        return self.scope.split() if self.scope else []

    def is_expired(self, current_ms: int, margin_seconds: int = DEFAULT_REFRESH_MARGIN_SECONDS) -> bool:
        """Check if the token is expired or will expire within margin_seconds.

        Unknown expiry counts as expired.
        """
        expires_at = self.expires_at
        if expires_at is None:
            return True
        return current_ms >= expires_at - margin_seconds * 1000

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the on-disk record layout"""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
            "scope": self.scope,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CredentialSet':
        """Create from a stored record. Raises KeyError/ValueError on bad data."""
        access_token = data["access_token"]
        refresh_token = data["refresh_token"]
        if not access_token or not refresh_token:
            raise ValueError("access_token and refresh_token must be non-empty")

        expires_in = data.get("expires_in")
        created_at = data.get("created_at")
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type=data.get("token_type") or "bearer",
            scope=data.get("scope") or "",
            expires_in=int(expires_in) if expires_in is not None else None,
            created_at=int(created_at) if created_at is not None else None,
        )

    @classmethod
    def from_token_response(cls, data: Dict[str, Any], created_at: int) -> 'CredentialSet':
        """Build a brand-new set from a token endpoint response."""
        return cls.from_dict({
            "access_token": data.get("access_token"),
            "refresh_token": data.get("refresh_token"),
            "token_type": data.get("token_type"),
            "expires_in": data.get("expires_in"),
            "scope": data.get("scope"),
            "created_at": created_at,
        })
