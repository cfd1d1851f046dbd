"""Entry point for running the server as a module.

Usage:
    python -m zoom_chat_mcp [serve|auth|status]
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
