"""
Tests for the command line entry point.
"""

import pytest

from zoom_chat_mcp import cli
from zoom_chat_mcp.errors import ConfigurationError


class TestParseArgs:

    def test_defaults_to_serve(self):
        args = cli.parse_args([])
        assert args.command == "serve"
        assert args.config == "config.yaml"

    def test_command_and_config(self):
        args = cli.parse_args(["--config", "/etc/zoom.yaml", "status"])
        assert args.command == "status"
        assert args.config == "/etc/zoom.yaml"

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["login"])


class TestStatusCommand:

    def test_not_authorized(self, settings, capsys):
        assert cli.run_status(settings) == 1
        assert "zoom-chat-mcp auth" in capsys.readouterr().err

    def test_authorized(self, settings, stored_credentials, capsys):
        assert cli.run_status(settings) == 0

        err = capsys.readouterr().err
        assert "Zoom credentials" in err
        assert "team_chat:read:channel" in err


class TestAuthCommand:

    def test_requires_client_credentials(self, settings):
        settings.client_id = ""
        with pytest.raises(ConfigurationError):
            cli.run_auth(settings)
