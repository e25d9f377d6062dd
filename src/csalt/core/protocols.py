"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters and CLI
prompts must satisfy.  Core code depends ONLY on these protocols —
never on concrete implementations.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from csalt.core.models import DeviceReference, TranslationResult, UserConfig


class NameTranslator(Protocol):
    """Contract for the Cacophony user API client."""

    @property
    def server_url(self) -> str:
        ...  # pragma: no cover

    @property
    def username(self) -> str:
        ...  # pragma: no cover

    @property
    def authenticated(self) -> bool:
        """``True`` once a password login succeeded in this run."""
        ...  # pragma: no cover

    def has_token(self) -> bool:
        """``True`` when a token is available for API requests."""
        ...  # pragma: no cover

    def authenticate(self, password: str) -> None:
        """Log in with *password*.

        Raises
        ------
        AuthenticationError
            When the username/password pair is rejected.
        DirectoryAPIError
            For any other failure.
        """
        ...  # pragma: no cover

    def request_token(self, ttl: str) -> str:
        """Request a token with lifetime class *ttl* and return it."""
        ...  # pragma: no cover

    def translate_names(
        self,
        groups: Sequence[str],
        devices: Sequence[DeviceReference],
    ) -> TranslationResult:
        """Resolve group and device names into devices with salt ids.

        Raises
        ------
        AuthenticationError
            When the token is missing, expired or rejected.
        DirectoryAPIError
            For transport or validation failures.
        """
        ...  # pragma: no cover


class TokenStore(Protocol):
    """Contract for the per-username token file."""

    def read_token(self, username: str) -> str | None:
        """Return the saved token for *username*, or ``None``."""
        ...  # pragma: no cover

    def save_token(self, username: str, token: str, ttl: str) -> None:
        ...  # pragma: no cover


class ConfigStore(Protocol):
    """Contract for the user config file."""

    def load(self) -> UserConfig:
        ...  # pragma: no cover

    def save(self, config: UserConfig) -> None:
        ...  # pragma: no cover


class CredentialPrompter(Protocol):
    """Contract for interactive username/password entry."""

    def ask_username(self) -> str:
        ...  # pragma: no cover

    def ask_password(self, username: str, *, retry: bool = False) -> str:
        """Prompt for the password of *username*.

        *retry* is ``True`` after a rejected attempt so the prompt can
        say so.
        """
        ...  # pragma: no cover


class SaltRunner(Protocol):
    """Contract for the privileged salt invocation."""

    def run(self, args: Sequence[str]) -> None:
        """Run ``sudo salt *args`` with inherited standard streams.

        Raises
        ------
        SaltNotFoundError
            When the process cannot be launched.
        SaltCommandError
            When salt exits with a nonzero status.
        """
        ...  # pragma: no cover
