"""
Tests for token renewal: expiry handling, refresh requests, single-flight
locking and the authorization code exchange.
"""

import asyncio
import base64
from urllib.parse import parse_qs

import httpx
import pytest
import respx
from httpx import Response

from zoom_chat_mcp.errors import NetworkError, ReauthRequired, Unauthorized
from zoom_chat_mcp.oauth import CredentialSet

from conftest import TOKEN_URL, token_response


def form_of(request: httpx.Request) -> dict:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


def expected_basic_auth() -> str:
    return "Basic " + base64.b64encode(b"client-id:client-secret").decode()


class TestGetAccessToken:

    @pytest.mark.asyncio
    async def test_valid_token_needs_no_refresh(self, token_manager, stored_credentials):
        with respx.mock:
            token = await token_manager.get_access_token()
            again = await token_manager.get_access_token()

        assert token == again == "access-1"

    @pytest.mark.asyncio
    async def test_missing_record_is_unauthorized(self, token_manager):
        with pytest.raises(Unauthorized) as exc_info:
            await token_manager.get_access_token()
        assert "zoom-chat-mcp auth" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_near_expiry_token_is_refreshed(self, token_manager, store, clock):
        # 50 seconds of validity left, inside the 60 second margin
        store.save(CredentialSet(
            "access-1", "refresh-1", expires_in=3600, created_at=clock.ms - 3_550_000,
        ))

        with respx.mock:
            route = respx.post(TOKEN_URL).mock(return_value=Response(200, json=token_response()))
            token = await token_manager.get_access_token()

        assert token == "access-2"
        assert route.call_count == 1
        request = route.calls.last.request
        assert request.headers["Authorization"] == expected_basic_auth()
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert form_of(request) == {"grant_type": "refresh_token", "refresh_token": "refresh-1"}

    @pytest.mark.asyncio
    async def test_refresh_replaces_and_persists_every_field(self, token_manager, store, clock):
        store.save(CredentialSet(
            "access-1", "refresh-1", scope="old:scope", expires_in=3600, created_at=clock.ms - 3_600_000,
        ))

        with respx.mock:
            respx.post(TOKEN_URL).mock(return_value=Response(200, json=token_response(
                access_token="access-9", refresh_token="refresh-9", expires_in=1800, scope="new:scope",
            )))
            await token_manager.get_access_token()

        expected = CredentialSet(
            access_token="access-9",
            refresh_token="refresh-9",
            token_type="bearer",
            scope="new:scope",
            expires_in=1800,
            created_at=clock.ms,
        )
        assert token_manager.cached == expected
        assert store.load() == expected

    @pytest.mark.asyncio
    async def test_rejected_refresh_requires_reauthorization(self, token_manager, store, clock):
        stale = CredentialSet("access-1", "refresh-1", expires_in=3600, created_at=clock.ms - 7_200_000)
        store.save(stale)

        with respx.mock:
            respx.post(TOKEN_URL).mock(return_value=Response(
                400, json={"reason": "Invalid Token!", "error": "invalid_grant"},
            ))
            with pytest.raises(ReauthRequired) as exc_info:
                await token_manager.get_access_token()

        assert exc_info.value.status_code == 400
        assert "invalid_grant" in exc_info.value.body
        assert "zoom-chat-mcp auth" in str(exc_info.value)
        # the stored record is left as it was
        assert store.load() == stale

    @pytest.mark.asyncio
    async def test_unreachable_token_endpoint(self, token_manager, store, clock):
        store.save(CredentialSet("access-1", "refresh-1", expires_in=3600, created_at=clock.ms - 7_200_000))

        with respx.mock:
            respx.post(TOKEN_URL).mock(side_effect=httpx.ConnectError("connection refused"))
            with pytest.raises(NetworkError) as exc_info:
                await token_manager.get_access_token()

        assert exc_info.value.attempts == 1
        assert "ConnectError" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_incomplete_token_response_fails(self, token_manager, store, clock):
        store.save(CredentialSet("access-1", "refresh-1", expires_in=3600, created_at=clock.ms - 7_200_000))

        with respx.mock:
            respx.post(TOKEN_URL).mock(return_value=Response(200, json={"access_token": "access-2"}))
            with pytest.raises(ReauthRequired):
                await token_manager.get_access_token()

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_refresh(self, token_manager, store, clock):
        store.save(CredentialSet("access-1", "refresh-1", expires_in=3600, created_at=clock.ms - 7_200_000))

        with respx.mock:
            route = respx.post(TOKEN_URL).mock(return_value=Response(200, json=token_response()))
            tokens = await asyncio.gather(*(token_manager.get_access_token() for _ in range(5)))

        assert tokens == ["access-2"] * 5
        assert route.call_count == 1


class TestForceRefresh:

    @pytest.mark.asyncio
    async def test_refreshes_a_locally_valid_token(self, token_manager, stored_credentials):
        with respx.mock:
            route = respx.post(TOKEN_URL).mock(return_value=Response(200, json=token_response()))
            credentials = await token_manager.force_refresh(rejected_token="access-1")

        assert route.call_count == 1
        assert credentials.access_token == "access-2"

    @pytest.mark.asyncio
    async def test_skips_when_rejected_token_was_already_replaced(self, token_manager, stored_credentials):
        await token_manager.load()

        with respx.mock:
            credentials = await token_manager.force_refresh(rejected_token="some-older-token")

        assert credentials.access_token == "access-1"

    @pytest.mark.asyncio
    async def test_concurrent_rejections_refresh_once(self, token_manager, stored_credentials):
        with respx.mock:
            route = respx.post(TOKEN_URL).mock(return_value=Response(200, json=token_response()))
            results = await asyncio.gather(
                token_manager.force_refresh(rejected_token="access-1"),
                token_manager.force_refresh(rejected_token="access-1"),
            )

        assert route.call_count == 1
        assert [c.access_token for c in results] == ["access-2", "access-2"]


class TestExchangeCode:

    @pytest.mark.asyncio
    async def test_exchange_persists_first_credential(self, token_manager, store, clock):
        with respx.mock:
            route = respx.post(TOKEN_URL).mock(return_value=Response(200, json=token_response()))
            credentials = await token_manager.exchange_code("auth-code", "http://localhost:4488/callback")

        assert form_of(route.calls.last.request) == {
            "grant_type": "authorization_code",
            "code": "auth-code",
            "redirect_uri": "http://localhost:4488/callback",
        }
        assert route.calls.last.request.headers["Authorization"] == expected_basic_auth()
        assert credentials.created_at == clock.ms
        assert store.load() == credentials
        assert token_manager.cached == credentials

    @pytest.mark.asyncio
    async def test_rejected_code(self, token_manager, store):
        with respx.mock:
            respx.post(TOKEN_URL).mock(return_value=Response(400, json={"error": "invalid_request"}))
            with pytest.raises(Unauthorized) as exc_info:
                await token_manager.exchange_code("bad-code", "http://localhost:4488/callback")

        assert not isinstance(exc_info.value, ReauthRequired)
        assert "HTTP 400" in str(exc_info.value)
        assert not store.exists()


class TestTokenStatus:

    def test_not_authorized(self, token_manager, tokens_path):
        status = token_manager.token_status()
        assert status == {"authorized": False, "tokens_path": str(tokens_path)}

    def test_authorized(self, token_manager, stored_credentials, clock):
        status = token_manager.token_status()

        assert status["authorized"] is True
        assert status["expires_in_seconds"] == 3600
        assert status["expires_in_human"] == "1h 0m"
        assert status["is_expired"] is False
        assert status["scopes"] == ["team_chat:read:channel", "user:read:user"]
        # short tokens are fully masked
        assert status["access_token_preview"] == "********"

    def test_expired(self, token_manager, stored_credentials, clock):
        clock.advance(3600)
        status = token_manager.token_status()

        assert status["is_expired"] is True
        assert status["expires_in_human"] == "expired"
