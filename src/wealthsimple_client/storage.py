"""
Credential persistence.

The token manager only needs ``save(value, key)`` and ``read(key)``; any object
providing both (a keyring wrapper, a database row, ...) can be passed in.
"""

import json
import logging
import os
from pathlib import Path
from typing import Protocol

from .settings import resolve_token_path

logger = logging.getLogger(__name__)


class CredentialStorage(Protocol):
    """Blocking key/value store for API tokens."""

    def save(self, value: str, key: str) -> None: ...

    def read(self, key: str) -> str | None: ...


class MemoryCredentialStorage:
    """Keeps values for the lifetime of the process only."""

    def __init__(self, values: dict[str, str] | None = None):
        self.values: dict[str, str] = dict(values or {})

    def save(self, value: str, key: str) -> None:
        self.values[key] = value

    def read(self, key: str) -> str | None:
        return self.values.get(key)


class JsonFileCredentialStorage:
    """
    Stores credentials as a flat JSON object in a file.

    Defaults to ~/.wealthsimple-cli-tools/tokens/credentials.json, overridable
    with WEALTHSIMPLE_TOKEN_PATH or WEALTHSIMPLE_CLI_DATA_DIR.
    """

    def __init__(self, token_path: Path | None = None):
        self.token_path = Path(token_path or resolve_token_path())

    def exists(self) -> bool:
        """Check if the credential file exists"""
        return self.token_path.exists()

    def load(self) -> dict[str, str]:
        """Load all stored values, empty when missing or unreadable"""
        if not self.exists():
            return {}
        try:
            with open(self.token_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load credentials: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring credential file with unexpected content: {self.token_path}")
            return {}
        return {key: value for key, value in data.items() if isinstance(value, str)}

    def read(self, key: str) -> str | None:
        return self.load().get(key)

    def save(self, value: str, key: str) -> None:
        values = self.load()
        values[key] = value
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        # Owner-only before any token is written, also for a pre-existing file
        fd = os.open(self.token_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(values, f, indent=2)

    def delete(self) -> None:
        """Delete the credential file (forces re-authentication)"""
        if self.token_path.exists():
            self.token_path.unlink()
            logger.info(f"Deleted credential file: {self.token_path}")
