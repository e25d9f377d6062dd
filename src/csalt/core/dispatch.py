"""Command dispatch — decides how a run reaches salt.

States
------
* no commands, unstructured query  → forward the raw query verbatim
  (nothing is dispatched in show mode, the ids are only printed)
* no commands, structured query    → show mode translates and prints,
  otherwise the run fails
* commands, no device/group terms  → forward everything unchanged
* commands and device/group terms  → translate → dedup → format → salt

The pure planning helpers live here together with
:class:`SaltDispatcher`, which drives an injected
:class:`~csalt.core.protocols.SaltRunner`.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence

from csalt.core.duplicates import check_for_duplicates
from csalt.core.models import ParsedQuery, ResolvedDevice, TranslationResult
from csalt.core.protocols import SaltRunner
from csalt.core.salt_ids import format_salt_ids
from csalt.exceptions import InsufficientArgumentsError, NoDevicesFoundError

logger = logging.getLogger(__name__)

LIST_TARGET_FLAG: str = "-L"


class DispatchMode(enum.Enum):
    """How a single run reaches salt."""

    RAW_PASSTHROUGH = "raw"
    """Run ``salt <raw query>``."""

    DIRECT = "direct"
    """Run ``salt <commands>`` without translation."""

    TRANSLATE = "translate"
    """Translate names, then run salt on the resulting ids."""

    SHOW_ONLY = "show"
    """Translate names and print the ids; salt is not run."""


def plan_dispatch(
    query: ParsedQuery,
    commands: Sequence[str],
    *,
    show: bool = False,
) -> DispatchMode:
    """Pick the :class:`DispatchMode` for *query* and *commands*.

    Raises
    ------
    InsufficientArgumentsError
        When there are no commands and the query cannot stand alone.
    """
    if not commands:
        if not query.has_values:
            raise InsufficientArgumentsError(
                "Commands/deviceinfo must be specified",
                hint="Run 'csalt --help' for usage and examples.",
            )
        if show:
            return DispatchMode.SHOW_ONLY
        if query.has_structure:
            raise InsufficientArgumentsError(
                "Commands must be specified for a device query",
                hint='e.g. csalt "group1:,group2:gp" test.ping',
            )
        return DispatchMode.RAW_PASSTHROUGH
    if not query.has_values:
        return DispatchMode.DIRECT
    return DispatchMode.TRANSLATE


def select_targets(
    result: TranslationResult,
    query: ParsedQuery | None = None,
) -> list[ResolvedDevice]:
    """Gate a translation result before any id is formatted.

    Raises
    ------
    AmbiguousDeviceError
        When a name-only query matched several devices.
    NoDevicesFoundError
        When nothing resolved.
    """
    check_for_duplicates(result, query)
    devices = result.all_devices()
    if not devices:
        raise NoDevicesFoundError(
            "No valid devices found",
            hint="Check the device and group names, or use --server/--test.",
        )
    return devices


def build_salt_args(
    devices: Sequence[ResolvedDevice],
    commands: Sequence[str],
    salt_prefix: str = "",
) -> list[str]:
    """Return the salt arguments ``[-L] "<ids>" <commands...>``."""
    if not devices:
        raise NoDevicesFoundError("No valid devices found")
    args: list[str] = []
    if len(devices) > 1:
        args.append(LIST_TARGET_FLAG)
    args.append(" ".join(format_salt_ids(devices, salt_prefix)))
    args.extend(commands)
    return args


class SaltDispatcher:
    """Runs salt for each :class:`DispatchMode` that reaches it.

    Parameters
    ----------
    runner:
        Any object satisfying the :class:`SaltRunner` protocol.
    """

    def __init__(self, runner: SaltRunner) -> None:
        self._runner: SaltRunner = runner

    def run_raw(self, query: ParsedQuery) -> None:
        """Forward the raw query text as the only salt argument."""
        self._runner.run([query.raw_text])

    def run_direct(self, query: ParsedQuery, commands: Sequence[str]) -> None:
        """Forward the commands, preceded by any non-blank raw query text."""
        args = [query.raw_text] if query.raw_text.strip() else []
        args.extend(commands)
        self._runner.run(args)

    def run_for_devices(
        self,
        devices: Sequence[ResolvedDevice],
        commands: Sequence[str],
        salt_prefix: str = "",
    ) -> None:
        """Run *commands* on the minions of *devices*."""
        args = build_salt_args(devices, commands, salt_prefix)
        logger.debug("Running salt on %d device(s)", len(devices))
        self._runner.run(args)
