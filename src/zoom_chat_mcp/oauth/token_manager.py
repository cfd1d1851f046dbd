"""
Token lifecycle for the Zoom OAuth session.

One TokenManager instance is created at process start and shared by every
caller. It owns the in-memory credential cache, decides when the cached
credential is stale and renews it against the Zoom token endpoint. Renewal is
single-flight: concurrent callers that find the same stale credential wait for
one refresh and reuse its result.
"""

import asyncio
import time
from typing import Any, Callable, Dict, Optional

import httpx

from ..errors import REAUTH_HINT, NetworkError, ReauthRequired, Unauthorized, describe_transport_error
from ..log_utils import LogEvent, LogRecord, debug, error, info, token_preview
from .credentials import DEFAULT_REFRESH_MARGIN_SECONDS, CredentialSet
from .store import CredentialStore


class TokenManager:
    """Owns the cached CredentialSet and drives its renewal."""

    def __init__(
        self,
        store: CredentialStore,
        client_id: str,
        client_secret: str,
        token_url: str,
        refresh_margin_seconds: int = DEFAULT_REFRESH_MARGIN_SECONDS,
        timeout: Optional[httpx.Timeout] = None,
        proxy: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.refresh_margin_seconds = refresh_margin_seconds
        self.timeout = timeout or httpx.Timeout(30.0)
        self.proxy = proxy or None
        self._clock = clock
        self._cached: Optional[CredentialSet] = None
        self._refresh_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings, store: Optional[CredentialStore] = None) -> 'TokenManager':
        return cls(
            store=store or CredentialStore(settings.tokens_file),
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            token_url=settings.token_url,
            refresh_margin_seconds=int(settings.refresh_margin_seconds),
            timeout=settings.http_timeout,
            proxy=settings.proxy,
        )

    @property
    def cached(self) -> Optional[CredentialSet]:
        return self._cached

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def is_authorized(self) -> bool:
        """True when a credential record exists (the gate before any API call)."""
        return self.store.exists()

    def is_expired(self, credentials: Optional[CredentialSet]) -> bool:
        if credentials is None:
            return True
        return credentials.is_expired(self.now_ms(), self.refresh_margin_seconds)

    async def load(self) -> CredentialSet:
        """Return the cached credential, reading the store on first use."""
        if self._cached is None:
            self._cached = await asyncio.to_thread(self.store.load)
        return self._cached

    async def _persist(self, credentials: CredentialSet) -> None:
        await asyncio.to_thread(self.store.save, credentials)
        self._cached = credentials

    async def get_access_token(self) -> str:
        """Return a usable access token, renewing it first when stale."""
        credentials = self._cached
        if credentials is not None and not self.is_expired(credentials):
            return credentials.access_token

        async with self._refresh_lock:
            credentials = await self.load()
            if self.is_expired(credentials):
                debug(LogRecord(
                    event=LogEvent.TOKEN_EXPIRED.value,
                    message="Cached access token is expired or about to expire",
                    data={"expires_at": credentials.expires_at, "now": self.now_ms()}
                ))
                credentials = await self.refresh(credentials)
            return credentials.access_token

    async def force_refresh(self, rejected_token: Optional[str] = None) -> CredentialSet:
        """Renew regardless of the local expiry estimate.

        Used when the API rejected ``rejected_token``. If another caller has
        already replaced that token, the newer credential is returned without
        a second refresh.
        """
        async with self._refresh_lock:
            credentials = await self.load()
            if rejected_token is not None and credentials.access_token != rejected_token:
                debug(LogRecord(
                    event=LogEvent.TOKEN_REFRESH_SHARED.value,
                    message="Rejected token was already replaced by a concurrent refresh"
                ))
                return credentials
            return await self.refresh(credentials)

    async def refresh(self, credentials: CredentialSet) -> CredentialSet:
        """Exchange the refresh token for a brand-new credential set and persist it.

        A rejected refresh is not retried: the refresh token has most likely
        been revoked or rotated, so the user must authorize again.
        """
        debug(LogRecord(
            event=LogEvent.TOKEN_REFRESH_REQUEST.value,
            message=f"Refreshing access token (refresh token {token_preview(credentials.refresh_token)})"
        ))

        response = await self._post_token_endpoint({
            "grant_type": "refresh_token",
            "refresh_token": credentials.refresh_token,
        })

        if not response.is_success:
            error(LogRecord(
                event=LogEvent.TOKEN_REFRESH_FAILED.value,
                message=f"Token refresh failed: HTTP {response.status_code}",
                data={"status_code": response.status_code}
            ))
            raise ReauthRequired(
                f"Token refresh failed (HTTP {response.status_code}): {response.text}\n{REAUTH_HINT}",
                status_code=response.status_code,
                body=response.text,
            )

        new_credentials = self._credentials_from_response(response, ReauthRequired)
        await self._persist(new_credentials)

        info(LogRecord(
            event=LogEvent.TOKEN_REFRESHED.value,
            message=f"Access token refreshed; expires in {new_credentials.expires_in}s",
            data={"scope": new_credentials.scope}
        ))
        return new_credentials

    async def exchange_code(self, code: str, redirect_uri: str) -> CredentialSet:
        """Trade an authorization code for the first credential set and persist it."""
        response = await self._post_token_endpoint({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
        })

        if not response.is_success:
            error(LogRecord(
                event=LogEvent.TOKEN_REFRESH_FAILED.value,
                message=f"Authorization code exchange failed: HTTP {response.status_code}",
                data={"status_code": response.status_code}
            ))
            raise Unauthorized(
                f"Authorization code exchange failed (HTTP {response.status_code}): {response.text}"
            )

        async with self._refresh_lock:
            credentials = self._credentials_from_response(response, Unauthorized)
            await self._persist(credentials)

        info(LogRecord(
            event=LogEvent.TOKEN_EXCHANGED.value,
            message="Authorization code exchanged for tokens",
            data={"scope": credentials.scope, "expires_in": credentials.expires_in}
        ))
        return credentials

    async def _post_token_endpoint(self, form: Dict[str, str]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, proxy=self.proxy) as client:
                return await client.post(
                    self.token_url,
                    data=form,
                    auth=(self.client_id, self.client_secret),
                    headers={"Accept": "application/json"},
                )
        except httpx.TransportError as e:
            error(LogRecord(
                event=LogEvent.TOKEN_REFRESH_FAILED.value,
                message=f"Token endpoint unreachable: {describe_transport_error(e)}"
            ), exc=e)
            raise NetworkError(1, e) from e

    def _credentials_from_response(self, response: httpx.Response, failure: type) -> CredentialSet:
        try:
            return CredentialSet.from_token_response(response.json(), created_at=self.now_ms())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise failure(
                f"The Zoom token endpoint returned an unusable response ({e}).\n{REAUTH_HINT}"
            ) from e

    def token_status(self) -> Dict[str, Any]:
        """Safe summary of the stored credential (no secrets)."""
        if not self.store.exists():
            return {"authorized": False, "tokens_path": str(self.store.path)}

        credentials = self._cached or self.store.load()
        expires_at = credentials.expires_at
        expires_in_seconds = max(0.0, (expires_at - self.now_ms()) / 1000) if expires_at else 0.0
        return {
            "authorized": True,
            "tokens_path": str(self.store.path),
            "token_type": credentials.token_type,
            "created_at": credentials.created_at,
            "expires_at": expires_at,
            "expires_in_seconds": int(expires_in_seconds),
            "expires_in_human": _format_duration(expires_in_seconds),
            "is_expired": self.is_expired(credentials),
            "scopes": credentials.scopes,
            "access_token_preview": token_preview(credentials.access_token),
            "refresh_token_preview": token_preview(credentials.refresh_token),
        }


def _format_duration(seconds: float) -> str:
    """Format duration in human readable format"""
    if seconds <= 0:
        return "expired"
    elif seconds < 60:
        return f"{int(seconds)}s"
    elif seconds < 3600:
        return f"{int(seconds / 60)}m"
    elif seconds < 86400:
        hours = int(seconds / 3600)
        minutes = int((seconds % 3600) / 60)
        return f"{hours}h {minutes}m"
    else:
        days = int(seconds / 86400)
        hours = int((seconds % 86400) / 3600)
        return f"{days}d {hours}h"
