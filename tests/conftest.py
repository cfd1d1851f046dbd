"""Pytest configuration and fixtures for zoom-chat-mcp tests."""

from pathlib import Path
from typing import Any, Dict, List

import pytest

from zoom_chat_mcp.config import Settings
from zoom_chat_mcp.core import PaginatedCollector, ZoomApiClient
from zoom_chat_mcp.oauth import CredentialSet, CredentialStore, TokenManager

TOKEN_URL = "https://zoom.test/oauth/token"
API_HOST = "api.zoom.test"
API_BASE = f"https://{API_HOST}/v2"

# 2023-11-14T22:13:20Z
START_TIME = 1_700_000_000.0


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, start: float = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    @property
    def ms(self) -> int:
        return int(self.now * 1000)

    def advance(self, seconds: float):
        self.now += seconds


class SleepRecorder:
    """Async stand-in for asyncio.sleep that records the requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


def token_response(access_token: str = "access-2", refresh_token: str = "refresh-2",
                   expires_in: int = 3600, scope: str = "team_chat:read:channel") -> Dict[str, Any]:
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "expires_in": expires_in,
        "scope": scope,
    }


def api_path(path: str) -> str:
    """Path as seen by the mocked transport (base path included)."""
    return f"/v2{path}"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def tokens_path(tmp_path: Path) -> Path:
    return tmp_path / "zoom" / "tokens.json"


@pytest.fixture
def store(tokens_path: Path) -> CredentialStore:
    return CredentialStore(tokens_path)


@pytest.fixture
def fresh_credentials(clock: FakeClock) -> CredentialSet:
    return CredentialSet(
        access_token="access-1",
        refresh_token="refresh-1",
        token_type="bearer",
        scope="team_chat:read:channel user:read:user",
        expires_in=3600,
        created_at=clock.ms,
    )


@pytest.fixture
def stored_credentials(store: CredentialStore, fresh_credentials: CredentialSet) -> CredentialSet:
    store.save(fresh_credentials)
    return fresh_credentials


@pytest.fixture
def token_manager(store: CredentialStore, clock: FakeClock) -> TokenManager:
    return TokenManager(
        store=store,
        client_id="client-id",
        client_secret="client-secret",
        token_url=TOKEN_URL,
        clock=clock,
    )


@pytest.fixture
def api_client(token_manager: TokenManager, sleeps: SleepRecorder) -> ZoomApiClient:
    return ZoomApiClient(token_manager, base_url=API_BASE, sleep=sleeps)


@pytest.fixture
def collector(api_client: ZoomApiClient) -> PaginatedCollector:
    return PaginatedCollector(api_client)


@pytest.fixture
def settings(tokens_path: Path) -> Settings:
    settings = Settings(config_path=None, load_env=False)
    settings.client_id = "client-id"
    settings.client_secret = "client-secret"
    settings.tokens_path = str(tokens_path)
    settings.api_base_url = API_BASE
    settings.oauth_base_url = "https://zoom.test/oauth"
    return settings
