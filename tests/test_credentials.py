"""
Tests for the credential set and its on-disk store.
"""

import json
import os
import stat

import pytest

from zoom_chat_mcp.errors import Unauthorized
from zoom_chat_mcp.oauth import CredentialSet, CredentialStore, onboarding_message


class TestCredentialSet:

    def test_expiry_instant(self):
        credentials = CredentialSet("a", "r", expires_in=3600, created_at=1_000_000)
        assert credentials.expires_at == 1_000_000 + 3_600_000

    def test_is_expired_honors_margin(self):
        credentials = CredentialSet("a", "r", expires_in=3600, created_at=0)
        # expires at 3_600_000; stale from 3_540_000 with the default 60s margin
        assert not credentials.is_expired(3_539_999)
        assert credentials.is_expired(3_540_000)
        assert credentials.is_expired(3_600_001)

    def test_custom_margin(self):
        credentials = CredentialSet("a", "r", expires_in=3600, created_at=0)
        assert not credentials.is_expired(3_599_000, margin_seconds=0)
        assert credentials.is_expired(3_000_000, margin_seconds=600)

    def test_unknown_expiry_counts_as_expired(self):
        assert CredentialSet("a", "r").is_expired(0)
        assert CredentialSet("a", "r", expires_in=3600).is_expired(0)

    def test_scopes(self):
        credentials = CredentialSet("a", "r", scope="team_chat:read:channel user:read:user")
        assert credentials.scopes == ["team_chat:read:channel", "user:read:user"]
        assert CredentialSet("a", "r").scopes == []

    def test_from_dict_rejects_missing_tokens(self):
        with pytest.raises(KeyError):
            CredentialSet.from_dict({"access_token": "a"})
        with pytest.raises(ValueError):
            CredentialSet.from_dict({"access_token": "", "refresh_token": "r"})

    def test_from_token_response_builds_a_fresh_set(self):
        credentials = CredentialSet.from_token_response(
            {"access_token": "a2", "refresh_token": "r2", "expires_in": "3599", "scope": "x y"},
            created_at=42,
        )
        assert credentials.access_token == "a2"
        assert credentials.refresh_token == "r2"
        assert credentials.token_type == "bearer"
        assert credentials.expires_in == 3599
        assert credentials.created_at == 42
        assert credentials.scopes == ["x", "y"]

    def test_from_token_response_without_refresh_token_fails(self):
        with pytest.raises(ValueError):
            CredentialSet.from_token_response({"access_token": "a2", "expires_in": 3600}, created_at=1)


class TestCredentialStore:

    def test_missing_record_raises_with_onboarding(self, store):
        assert not store.exists()
        with pytest.raises(Unauthorized) as exc_info:
            store.load()
        assert "zoom-chat-mcp auth" in str(exc_info.value)
        assert str(store.path) in str(exc_info.value)

    def test_round_trip(self, store, fresh_credentials):
        store.save(fresh_credentials)

        assert store.exists()
        assert store.load() == fresh_credentials

    def test_record_layout_is_pretty_json(self, store, fresh_credentials):
        store.save(fresh_credentials)

        text = store.path.read_text(encoding="utf-8")
        assert text.startswith("{\n  ")
        assert json.loads(text) == {
            "access_token": "access-1",
            "refresh_token": "refresh-1",
            "token_type": "bearer",
            "expires_in": 3600,
            "scope": "team_chat:read:channel user:read:user",
            "created_at": fresh_credentials.created_at,
        }

    def test_save_creates_parent_directory_and_restricts_mode(self, store, fresh_credentials):
        assert not store.path.parent.exists()
        store.save(fresh_credentials)

        mode = stat.S_IMODE(os.stat(store.path).st_mode)
        assert mode == 0o600

    def test_save_replaces_every_field(self, store, fresh_credentials):
        store.save(fresh_credentials)
        replacement = CredentialSet("access-2", "refresh-2", scope="", expires_in=120, created_at=5)
        store.save(replacement)

        assert store.load() == replacement
        # no temporary files left behind
        assert [p.name for p in store.path.parent.iterdir()] == [store.path.name]

    def test_corrupt_record_is_unauthorized(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json", encoding="utf-8")

        with pytest.raises(Unauthorized) as exc_info:
            store.load()
        assert "unreadable" in str(exc_info.value)

    def test_record_without_refresh_token_is_unauthorized(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({"access_token": "a"}), encoding="utf-8")

        with pytest.raises(Unauthorized):
            store.load()

    def test_path_expands_user(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        store = CredentialStore("~/tokens.json")
        assert store.path == tmp_path / "tokens.json"


def test_onboarding_message_names_command_and_path(tmp_path):
    message = onboarding_message(tmp_path / "tokens.json")
    assert "zoom-chat-mcp auth" in message
    assert "ZOOM_CLIENT_ID" in message
    assert str(tmp_path / "tokens.json") in message
