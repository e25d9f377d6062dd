"""Domain models for csalt.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access and a few derived properties.  They carry
zero I/O and no dependencies on external packages.
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Parsed device query
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DeviceReference:
    """A single device term of the DEVICEINFO argument."""

    device_name: str
    """Name of the device to look up."""

    group_name: str = ""
    """Group the device must belong to.  Empty matches any group."""

    @property
    def qualified(self) -> bool:
        """``True`` when the term pins the device to a group."""
        return self.group_name != ""

    def __str__(self) -> str:
        return f"{self.group_name}:{self.device_name}"


@dataclass(frozen=True, slots=True)
class ParsedQuery:
    """Structured form of the raw DEVICEINFO argument.

    Created once per invocation by
    :func:`~csalt.core.query_parser.parse_device_query`.
    """

    devices: tuple[DeviceReference, ...]
    """Device terms in query order."""

    groups: tuple[str, ...]
    """Group names (``group:`` terms) in query order."""

    raw_text: str
    """The argument exactly as supplied on the command line."""

    @property
    def has_values(self) -> bool:
        """``True`` when at least one device or group term was parsed."""
        return bool(self.devices) or bool(self.groups)

    @property
    def has_structure(self) -> bool:
        """``True`` when the raw text uses the ``,`` or ``:`` query syntax.

        A bare token such as ``"*"`` or ``"gp"`` has no structure and may
        equally be a literal salt argument.
        """
        return "," in self.raw_text or ":" in self.raw_text

    @property
    def unqualified_names(self) -> frozenset[str]:
        """Device names that were queried without a group."""
        return frozenset(
            ref.device_name for ref in self.devices if not ref.qualified
        )


# ---------------------------------------------------------------------------
# Translation results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ResolvedDevice:
    """A device returned by the user API, tagged with its salt id."""

    group_name: str
    device_name: str
    salt_id: int
    """Numeric id used to build the salt minion id (``pi-<salt_id>``)."""

    def __str__(self) -> str:
        return f"{self.group_name}:{self.device_name}"


@dataclass(frozen=True, slots=True)
class TranslationResult:
    """Devices matched by a name query.

    ``devices`` holds the members of queried groups while
    ``name_matches`` holds devices matched by device name.  Only name
    matches can be ambiguous.
    """

    devices: tuple[ResolvedDevice, ...] = ()
    name_matches: tuple[ResolvedDevice, ...] = ()

    def all_devices(self) -> list[ResolvedDevice]:
        """Group matches followed by name matches, first salt id wins."""
        seen: set[int] = set()
        result: list[ResolvedDevice] = []
        for device in (*self.devices, *self.name_matches):
            if device.salt_id not in seen:
                seen.add(device.salt_id)
                result.append(device)
        return result


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ServerAlias:
    """A named server entry from the ``servers:`` config section."""

    url: str
    salt_prefix: str = ""
    username: str = ""


@dataclass(frozen=True, slots=True)
class UserConfig:
    """Contents of ``cacophony-user.yaml``."""

    username: str = ""
    server_url: str = ""
    servers: dict[str, ServerAlias] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class SessionOptions:
    """Server, prefix and user selection flags from the command line."""

    server: str | None = None
    test_server: bool = False
    live_server: bool = False
    test_prefix: bool = False
    prefix: str | None = None
    no_prefix: bool = False
    user: str | None = None
    debug: bool = False
    verbose: bool = False


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Everything needed to talk to the API for one run.

    Built once by :func:`~csalt.core.session.resolve_session` and
    read-only afterwards.
    """

    server_url: str
    username: str
    salt_prefix: str
    token: str | None = None
    debug: bool = False
    verbose: bool = False
