"""
Durable single-record credential storage.

The record is a pretty-printed UTF-8 JSON file. Writes go to a temporary file
in the same directory which is then renamed over the old record, so a reader
sees either the previous record or the new one, never a partial write.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Union

from ..errors import Unauthorized
from ..log_utils import LogEvent, LogRecord, debug, warning
from .credentials import CredentialSet


def onboarding_message(tokens_path: Union[str, Path]) -> str:
    """Instructions shown whenever no usable credential is stored."""
    return (
        "Zoom is not authorized yet. The user needs to sign in to their Zoom account once.\n\n"
        "**Steps:**\n"
        "1. Open a terminal\n"
        "2. Run:\n"
        "```\n"
        "zoom-chat-mcp auth\n"
        "```\n"
        "(ZOOM_CLIENT_ID and ZOOM_CLIENT_SECRET must be set as environment variables)\n\n"
        "3. A browser window opens: sign in to Zoom and approve the app\n"
        f"4. The tokens are saved automatically to {tokens_path}\n"
        "5. Come back here and try again\n\n"
        "This is needed only **once** per user. The token renews automatically afterwards."
    )


class CredentialStore:
    """Stateless durable mirror of the current credential set."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> CredentialSet:
        """Read the stored credential set.

        Raises Unauthorized with onboarding instructions when the record is
        missing or unreadable.
        """
        if not self.exists():
            debug(LogRecord(
                event=LogEvent.TOKENS_MISSING.value,
                message=f"No credential record at {self.path}"
            ))
            raise Unauthorized(onboarding_message(self.path))

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            credentials = CredentialSet.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            warning(LogRecord(
                event=LogEvent.TOKENS_CORRUPT.value,
                message=f"Credential record at {self.path} is unreadable"
            ), exc=e)
            raise Unauthorized(
                f"The stored Zoom credentials at {self.path} are unreadable ({e}).\n\n"
                + onboarding_message(self.path)
            ) from e

        debug(LogRecord(
            event=LogEvent.TOKENS_LOADED.value,
            message=f"Loaded credential record from {self.path}"
        ))
        return credentials

    def save(self, credentials: CredentialSet) -> None:
        """Atomically replace the stored record."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(credentials.to_dict(), indent=2)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        debug(LogRecord(
            event=LogEvent.TOKENS_SAVED.value,
            message=f"Saved credential record to {self.path}"
        ))
