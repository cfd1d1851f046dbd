"""
Command line entry point.

    zoom-chat-mcp [--config PATH] [serve|auth|status]

``serve`` (the default) runs the MCP server on stdio, ``auth`` runs the
one-time browser authorization, ``status`` shows the stored credential.
"""

import argparse
import asyncio
import sys
import time

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import DEFAULT_CONFIG_PATH, Settings, setup_logging
from .errors import ZoomChatError
from .log_utils import init_logger, token_preview
from .oauth import CredentialStore, TokenManager
from .oauth.authorize import run_authorization_flow

# stdout is reserved for the stdio protocol while serving
_console = Console(stderr=True)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="zoom-chat-mcp",
        description="Zoom Team Chat tools over the Model Context Protocol (stdio)",
    )
    parser.add_argument(
        '--config',
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f'Path to configuration file (default: {DEFAULT_CONFIG_PATH})'
    )
    parser.add_argument(
        'command',
        nargs='?',
        choices=['serve', 'auth', 'status'],
        default='serve',
        help='serve: run the MCP server (default); auth: authorize with Zoom; status: show stored tokens'
    )
    return parser.parse_args(argv)


def _build_token_manager(settings: Settings) -> TokenManager:
    return TokenManager.from_settings(settings, CredentialStore(settings.tokens_file))


def run_serve(settings: Settings) -> int:
    settings.require_client_credentials()
    from .server import create_server

    mcp = create_server(settings)
    mcp.run(transport="stdio")
    return 0


def run_auth(settings: Settings) -> int:
    settings.require_client_credentials()
    token_manager = _build_token_manager(settings)

    _console.print(Text(f"Callback listener: {settings.redirect_uri}", style="dim"))
    credentials = asyncio.run(run_authorization_flow(
        settings,
        token_manager,
        announce=lambda line: _console.print(line, highlight=False),
    ))

    summary = Text.assemble(
        ("   Tokens file   : ", "default"),
        (str(settings.tokens_file), "bold cyan"),
        ("\n   access_token  : ", "default"),
        (token_preview(credentials.access_token) or "", "dim"),
        ("\n   refresh_token : ", "default"),
        (token_preview(credentials.refresh_token) or "", "dim"),
        ("\n   Expires in    : ", "default"),
        (f"{credentials.expires_in}s", "yellow"),
        ("\n   Scopes        : ", "default"),
        (credentials.scope, "default"),
    )
    _console.print(Panel(
        summary,
        title="Zoom authorization complete",
        border_style="green",
        expand=False,
    ))
    _console.print("The MCP server can be used now.")
    return 0


def run_status(settings: Settings) -> int:
    status = _build_token_manager(settings).token_status()
    if not status["authorized"]:
        _console.print(Panel(
            f"No credentials stored at {status['tokens_path']}.\nRun `zoom-chat-mcp auth` to authorize.",
            title="Zoom not authorized",
            border_style="red",
            expand=False,
        ))
        return 1

    table = Table(title="Zoom credentials", show_header=False)
    table.add_column("field", style="bold")
    table.add_column("value")
    table.add_row("Tokens file", status["tokens_path"])
    table.add_row("Token type", str(status["token_type"]))
    if status["created_at"]:
        created = time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(status["created_at"] / 1000))
        table.add_row("Issued", created)
    table.add_row(
        "Expires in",
        Text(status["expires_in_human"], style="red" if status["is_expired"] else "green"),
    )
    table.add_row("Access token", status["access_token_preview"] or "")
    table.add_row("Refresh token", status["refresh_token_preview"] or "")
    table.add_row("Scopes", "\n".join(status["scopes"]))
    _console.print(table)
    if status["is_expired"]:
        _console.print("The access token is stale; it is renewed automatically on the next API call.")
    return 0


COMMANDS = {
    "serve": run_serve,
    "auth": run_auth,
    "status": run_status,
}


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    settings = Settings(args.config)

    init_logger(settings.app_name)
    setup_logging(settings)

    try:
        return COMMANDS[args.command](settings)
    except ZoomChatError as e:
        _console.print(Text(str(e), style="bold red"))
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
