"""Custom exception hierarchy for csalt.

All exceptions that cross layer boundaries must inherit from
:class:`CsaltError`.  Raw third-party exceptions (httpx, PyYAML,
``subprocess``) must NEVER propagate beyond the infrastructure layer —
they are caught there and re-raised as a typed subclass defined here.

Hierarchy
---------
CsaltError
├── InsufficientArgumentsError
├── ConfigError
│   └── ServerNotFoundError
├── AuthenticationError
│   ├── MaxPasswordAttemptsError
│   └── PromptCancelledError
├── DirectoryAPIError
├── AmbiguousDeviceError
├── NoDevicesFoundError
├── SaltNotFoundError
├── SaltCommandError
└── EnvironmentError
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from csalt.core.models import ResolvedDevice


class CsaltError(Exception):
    """Base exception for all csalt errors.

    Every user-visible error condition maps to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Arguments -------------------------------------------------------------

class InsufficientArgumentsError(CsaltError):
    """Raised when neither commands nor a usable device query were given."""


# --- Configuration ---------------------------------------------------------

class ConfigError(CsaltError):
    """Raised when the user config file cannot be read or written."""


class ServerNotFoundError(ConfigError):
    """Raised when ``--server`` names an alias missing from the config."""

    def __init__(self, alias: str) -> None:
        super().__init__(
            f"Cannot find {alias} server info in config",
            hint="Add the alias under 'servers:' in cacophony-user.yaml.",
        )
        self.alias: str = alias


# --- Directory API ---------------------------------------------------------

class AuthenticationError(CsaltError):
    """Raised when the API rejects the supplied credentials or token."""


class MaxPasswordAttemptsError(AuthenticationError):
    """Raised after too many wrong passwords in a single run."""


class PromptCancelledError(AuthenticationError):
    """Raised when the user cancels a username or password prompt."""


class DirectoryAPIError(CsaltError):
    """Raised for transport failures and non-authentication API errors."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code: int | None = status_code


# --- Translation results ---------------------------------------------------

class AmbiguousDeviceError(CsaltError):
    """Raised when name-only queries match devices in several groups.

    The error carries the full ambiguity map so that presentation (the
    listing of competing ``group:device`` matches) stays in the CLI
    layer.
    """

    def __init__(
        self,
        ambiguous: Mapping[str, tuple[ResolvedDevice, ...]],
    ) -> None:
        self.ambiguous: dict[str, tuple[ResolvedDevice, ...]] = dict(ambiguous)
        super().__init__(
            f"DeviceName Query found {self.count} Duplicate Device "
            "please specify group:devicename",
            hint="Qualify the device as group:devicename.",
        )

    @property
    def count(self) -> int:
        """Number of distinct ambiguous device names."""
        return len(self.ambiguous)


class NoDevicesFoundError(CsaltError):
    """Raised when a structured query resolved to zero devices."""


# --- salt invocation -------------------------------------------------------

class SaltNotFoundError(CsaltError):
    """Raised when ``sudo`` or ``salt`` cannot be launched."""


class SaltCommandError(CsaltError):
    """Raised when the salt process exits with a nonzero status."""

    def __init__(self, returncode: int, command: str) -> None:
        super().__init__(f"{command} exited with status {returncode}")
        self.returncode: int = returncode
        self.command: str = command


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(CsaltError):
    """Raised when a required runtime dependency is not available."""
