"""
Settings and logging configuration for the Zoom Team Chat MCP server.

Settings are resolved in three layers: built-in defaults, the ``settings:``
section of an optional YAML config file, then environment variables (a
``.env`` file in the working directory is loaded first).
"""

import os
import sys
from logging.config import dictConfig
from pathlib import Path
from typing import Optional

import httpx
import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError
from .log_utils import ColoredConsoleFormatter, JSONFormatter

DEFAULT_CONFIG_PATH = "config.yaml"

# Environment variable -> settings attribute
ENV_OVERRIDES = {
    "ZOOM_CLIENT_ID": "client_id",
    "ZOOM_CLIENT_SECRET": "client_secret",
    "ZOOM_REDIRECT_URI": "redirect_uri",
    "ZOOM_TOKENS_PATH": "tokens_path",
    "ZOOM_API_BASE_URL": "api_base_url",
    "ZOOM_OAUTH_BASE_URL": "oauth_base_url",
    "ZOOM_MCP_LOG_LEVEL": "log_level",
    "ZOOM_MCP_LOG_FILE": "log_file_path",
    "ZOOM_MCP_PROXY": "proxy",
}


class Settings:
    """Application settings with defaults for a single-user local install."""

    def __init__(self, config_path: Optional[str] = DEFAULT_CONFIG_PATH, load_env: bool = True):
        # Application
        self.app_name: str = "zoom-chat-mcp"
        self.app_version: str = "1.0.0"
        self.log_level: str = "INFO"
        self.log_file_path: str = ""
        self.log_color: bool = True

        # OAuth app credentials
        self.client_id: str = ""
        self.client_secret: str = ""
        self.redirect_uri: str = "http://localhost:4488/callback"
        self.tokens_path: str = str(Path.home() / ".zoom-chat-mcp" / "tokens.json")
        self.refresh_margin_seconds: int = 60
        self.auth_timeout: float = 300.0

        # Upstream endpoints
        self.api_base_url: str = "https://api.zoom.us/v2"
        self.oauth_base_url: str = "https://zoom.us/oauth"
        self.proxy: str = ""

        # Request policy
        self.connect_timeout: float = 10.0
        self.read_timeout: float = 30.0
        self.pool_timeout: float = 10.0
        self.max_retries: int = 3
        self.page_size: int = 50
        self.max_pages: int = 10

        if config_path:
            self.load_from_config(config_path)
        if load_env:
            load_dotenv()
            self.load_from_env()

    def load_from_config(self, config_path: str):
        """Load settings from the ``settings:`` section of a YAML file."""
        path = Path(config_path).expanduser()
        if not path.exists():
            return

        try:
            with open(path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            # stdout belongs to the stdio protocol
            print(f"Warning: Failed to load settings from {path}: {e}", file=sys.stderr)
            print("Using default settings.", file=sys.stderr)
            return

        settings_config = config.get('settings', {}) or {}
        for key, value in settings_config.items():
            if hasattr(self, key) and value is not None:
                if key in ("tokens_path", "log_file_path") and value:
                    value = os.path.expanduser(str(value))
                    if not os.path.isabs(value):
                        value = str(path.parent / value)
                setattr(self, key, value)

    def load_from_env(self):
        """Apply environment variable overrides."""
        for env_name, attr in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                setattr(self, attr, value)

    @property
    def authorize_url(self) -> str:
        return f"{self.oauth_base_url.rstrip('/')}/authorize"

    @property
    def token_url(self) -> str:
        return f"{self.oauth_base_url.rstrip('/')}/token"

    @property
    def tokens_file(self) -> Path:
        return Path(self.tokens_path).expanduser()

    @property
    def http_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=float(self.connect_timeout),
            read=float(self.read_timeout),
            write=float(self.read_timeout),
            pool=float(self.pool_timeout),
        )

    def require_client_credentials(self):
        """Fail with setup instructions when the OAuth app credentials are missing."""
        missing = [
            name for name, value in (
                ("ZOOM_CLIENT_ID", self.client_id),
                ("ZOOM_CLIENT_SECRET", self.client_secret),
            ) if not value
        ]
        if missing:
            raise ConfigurationError(
                "Missing required environment variables: " + ", ".join(missing) + ".\n"
                "Set ZOOM_CLIENT_ID and ZOOM_CLIENT_SECRET (from your Zoom Marketplace OAuth app), "
                "either in the environment, in a .env file, or in the settings section of config.yaml.\n\n"
                "Example:\n"
                "  ZOOM_CLIENT_ID=xxx ZOOM_CLIENT_SECRET=yyy zoom-chat-mcp auth"
            )


def setup_logging(settings: Settings) -> dict:
    """Setup logging configuration.

    Console logs go to stderr: stdout carries the stdio tool protocol.
    """
    log_level = str(settings.log_level).upper()
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "colored_console": {
                "()": ColoredConsoleFormatter,
                "use_colors": bool(settings.log_color),
            },
            "json": {"()": JSONFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "colored_console",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            settings.app_name: {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }

    if settings.log_file_path:
        log_path = Path(settings.log_file_path).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_config["handlers"]["file"] = {
            "class": "logging.FileHandler",
            "level": log_level,
            "formatter": "json",
            "filename": str(log_path),
            "mode": "a",
            "encoding": "utf-8",
        }
        log_config["loggers"][settings.app_name]["handlers"].append("file")

    dictConfig(log_config)
    return log_config
