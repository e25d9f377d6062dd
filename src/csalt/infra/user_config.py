"""Infrastructure: the ``cacophony-user.yaml`` config file.

Example file::

    username: alice
    server-url: https://api.cacophony.org.nz
    servers:
      dev:
        url: http://localhost:1080
        salt-prefix: dev
        username: admin

A missing file is treated as an empty config.  PyYAML errors and
``OSError`` are re-raised as :class:`~csalt.exceptions.ConfigError`.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from csalt.core.models import ServerAlias, UserConfig
from csalt.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME: str = "cacophony-user.yaml"
CONFIG_ENV_VAR: str = "CSALT_CONFIG"


def default_config_path() -> Path:
    """``$CSALT_CONFIG`` if set, else ``~/cacophony-user.yaml``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_FILENAME


class YamlConfigStore:
    """Concrete :class:`~csalt.core.protocols.ConfigStore` backed by YAML."""

    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path if path is not None else default_config_path()

    def load(self) -> UserConfig:
        """Read the config file.

        Raises
        ------
        ConfigError
            When the file exists but cannot be read or parsed.
        """
        if not self.path.exists():
            logger.debug("No config file at %s", self.path)
            return UserConfig()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw: Any = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(
                f"Cannot read config {self.path}: {exc}",
                hint="Fix or remove the file and run csalt again.",
            ) from exc

        if not isinstance(raw, dict):
            raise ConfigError(f"Config {self.path} is not a YAML mapping")

        config = self._parse(raw)
        logger.debug(
            "Loaded config %s (%d server aliases)", self.path, len(config.servers),
        )
        return config

    def save(self, config: UserConfig) -> None:
        """Write *config* back to :attr:`path`.

        Raises
        ------
        ConfigError
            When the file cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump(self._dump(config), f, default_flow_style=False)
        except OSError as exc:
            raise ConfigError(f"Cannot write config {self.path}: {exc}") from exc
        logger.info("Saved config %s", self.path)

    # ------------------------------------------------------------------
    # Raw-dict <-> model conversion (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def _parse(raw: dict[str, Any]) -> UserConfig:
        servers: dict[str, ServerAlias] = {}
        raw_servers = raw.get("servers") or {}
        if isinstance(raw_servers, dict):
            for name, data in raw_servers.items():
                if not isinstance(data, dict):
                    continue
                servers[str(name)] = ServerAlias(
                    url=str(data.get("url") or ""),
                    salt_prefix=str(data.get("salt-prefix") or ""),
                    username=str(data.get("username") or ""),
                )
        return UserConfig(
            username=str(raw.get("username") or ""),
            server_url=str(raw.get("server-url") or ""),
            servers=servers,
        )

    @staticmethod
    def _dump(config: UserConfig) -> dict[str, Any]:
        data: dict[str, Any] = {"username": config.username}
        if config.server_url:
            data["server-url"] = config.server_url
        if config.servers:
            data["servers"] = {
                name: {
                    "url": alias.url,
                    "salt-prefix": alias.salt_prefix,
                    "username": alias.username,
                }
                for name, alias in config.servers.items()
            }
        return data
