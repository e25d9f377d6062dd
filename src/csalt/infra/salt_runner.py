"""Infrastructure: privileged ``salt`` invocation.

salt is always run through ``sudo`` with the parent's stdin, stdout and
stderr inherited, so salt (and sudo's own password prompt) talk to the
terminal directly.

Rules
-----
* No retry.
* No ``print()`` — the command line is logged at debug level.
* Launch failures and nonzero exits are mapped to typed errors.
"""

from __future__ import annotations

import logging
import platform
import shlex
import shutil
import subprocess
from collections.abc import Sequence

from csalt.exceptions import SaltCommandError, SaltNotFoundError

logger = logging.getLogger(__name__)

SUDO_EXECUTABLE: str = "sudo"
SALT_EXECUTABLE: str = "salt"


class SudoSaltRunner:
    """Concrete :class:`~csalt.core.protocols.SaltRunner`."""

    def __init__(
        self,
        *,
        sudo: str = SUDO_EXECUTABLE,
        salt: str = SALT_EXECUTABLE,
    ) -> None:
        self._sudo: str = sudo
        self._salt: str = salt

    def build_command(self, args: Sequence[str]) -> list[str]:
        """Return the full argv, ``sudo salt *args``."""
        return [self._sudo, self._salt, *args]

    def run(self, args: Sequence[str]) -> None:
        """Run salt and wait for it to exit.

        Raises
        ------
        SaltNotFoundError
            When ``sudo`` cannot be launched.
        SaltCommandError
            When the process exits with a nonzero status.
        """
        command = self.build_command(args)
        logger.debug("%s", shlex.join(command))

        try:
            completed = subprocess.run(command, check=False)
        except FileNotFoundError as exc:
            raise SaltNotFoundError(
                f"{self._sudo} is not installed or not on PATH.",
                hint=_install_hint(),
            ) from exc
        except OSError as exc:
            raise SaltNotFoundError(f"Cannot launch {self._sudo}: {exc}") from exc

        if completed.returncode != 0:
            if completed.returncode == 1 and shutil.which(self._salt) is None:
                logger.warning("%s was not found on PATH", self._salt)
            raise SaltCommandError(completed.returncode, self._salt)


# ---------------------------------------------------------------------------
# Platform-specific install guidance
# ---------------------------------------------------------------------------

def _install_hint() -> str:
    """Return install guidance appropriate for the current OS."""
    system = platform.system().lower()
    if system == "linux":
        return "Install sudo and salt-master, e.g. 'apt install sudo salt-master'."
    if system == "darwin":
        return "Install salt with 'brew install salt'."
    return "csalt needs sudo and salt; see https://docs.saltproject.io/."
