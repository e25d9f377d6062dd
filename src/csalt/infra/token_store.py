"""Infrastructure: the per-username token file (``~/.cacophony-token``).

The file is a YAML mapping of username to ``{token, ttl}`` and is
written with ``0600`` permissions.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from csalt.exceptions import ConfigError

logger = logging.getLogger(__name__)

TOKEN_FILENAME: str = ".cacophony-token"
TOKEN_ENV_VAR: str = "CSALT_TOKEN_FILE"


def default_token_path() -> Path:
    """``$CSALT_TOKEN_FILE`` if set, else ``~/.cacophony-token``."""
    override = os.environ.get(TOKEN_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / TOKEN_FILENAME


class YamlTokenStore:
    """Concrete :class:`~csalt.core.protocols.TokenStore` backed by YAML."""

    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path if path is not None else default_token_path()

    def read_token(self, username: str) -> str | None:
        """Return the saved token for *username*, or ``None``.

        Raises
        ------
        ConfigError
            When the token file exists but cannot be read.
        """
        entry = self._read_all().get(username)
        if not isinstance(entry, dict):
            return None
        token = entry.get("token")
        return str(token) if token else None

    def save_token(self, username: str, token: str, ttl: str) -> None:
        """Store *token* for *username*, keeping other users' entries."""
        try:
            tokens = self._read_all()
        except ConfigError as exc:
            logger.debug("Replacing unreadable token file: %s", exc)
            tokens = {}
        tokens[username] = {"token": token, "ttl": ttl}

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(tokens, f, default_flow_style=False)
        except OSError as exc:
            raise ConfigError(f"Cannot write token file {self.path}: {exc}") from exc
        logger.debug("Saved %s token for %s to %s", ttl, username, self.path)

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw: Any = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read token file {self.path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"Token file {self.path} is not a YAML mapping")
        return raw
