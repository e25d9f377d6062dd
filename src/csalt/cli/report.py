"""User-facing rendering of queries, translations and ambiguities.

All display-related logic lives here — no business logic, no API
calls, no salt invocation.
"""

from __future__ import annotations

from collections.abc import Sequence

from csalt.cli.console import console, escape, stdout_console
from csalt.core.models import ParsedQuery, ResolvedDevice, SessionContext, TranslationResult
from csalt.exceptions import AmbiguousDeviceError


# ---------------------------------------------------------------------------
# Line builders (pure)
# ---------------------------------------------------------------------------

def query_lines(query: ParsedQuery) -> list[str]:
    """Describe what will be looked up, one line per term."""
    lines: list[str] = []
    for ref in query.devices:
        if ref.qualified:
            lines.append(f"Looking for group:device {ref}")
        else:
            lines.append(f"Looking for device by name {ref.device_name}")
    lines.extend(f"Looking for devices in group {group}" for group in query.groups)
    return lines


def device_line(device: ResolvedDevice) -> str:
    return f"{device.group_name}:{device.device_name} saltid: {device.salt_id}"


def ambiguity_lines(error: AmbiguousDeviceError) -> list[str]:
    """List every ambiguous name followed by its competing matches."""
    lines: list[str] = []
    for name, matches in error.ambiguous.items():
        lines.append(f"Device {name} matches:")
        lines.extend(f"  {match}" for match in matches)
    return lines


# ---------------------------------------------------------------------------
# Console output
# ---------------------------------------------------------------------------

def show_session(session: SessionContext) -> None:
    console.print(
        f"[dim]CSalt using server {escape(session.server_url)}, "
        f"saltprefix {escape(session.salt_prefix)}, "
        f"user {escape(session.username)}[/dim]"
    )


def show_query(query: ParsedQuery) -> None:
    for line in query_lines(query):
        console.print(escape(line))


def show_translation(result: TranslationResult) -> None:
    """Print name matches and group matches separately."""
    console.print("[bold cyan]Translated Name matches:[/bold cyan]")
    for device in result.name_matches:
        console.print(escape(device_line(device)))
    console.print("[bold cyan]Translated Devices:[/bold cyan]")
    for device in result.devices:
        console.print(escape(device_line(device)))


def show_salt_ids(salt_ids: Sequence[str], *, verbose: bool = False) -> None:
    """Print the ids space separated on stdout, ready for piping."""
    ids = " ".join(salt_ids)
    if verbose:
        console.print(f"[bold green]translated salt names[/bold green] {escape(ids)}")
    stdout_console.print(escape(ids))


def show_ambiguity(error: AmbiguousDeviceError) -> None:
    for line in ambiguity_lines(error):
        console.print(escape(line))
