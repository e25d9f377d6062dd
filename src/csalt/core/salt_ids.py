"""Salt minion id formatting.

Every Cacophony device runs a salt minion named ``pi-<salt_id>`` on the
live environment and ``pi-<prefix>-<salt_id>`` elsewhere (for example
``pi-test-42``).  All functions here are pure.
"""

from __future__ import annotations

from collections.abc import Iterable

from csalt.core.models import ResolvedDevice

BASE_ID: str = "pi"
TEST_PREFIX: str = "test"


def salt_id_prefix(salt_prefix: str = "") -> str:
    """Return ``pi`` or ``pi-<salt_prefix>``."""
    if salt_prefix:
        return f"{BASE_ID}-{salt_prefix}"
    return BASE_ID


def format_salt_id(device: ResolvedDevice, salt_prefix: str = "") -> str:
    """Return the salt minion id for *device*."""
    return f"{salt_id_prefix(salt_prefix)}-{device.salt_id}"


def format_salt_ids(
    devices: Iterable[ResolvedDevice],
    salt_prefix: str = "",
) -> list[str]:
    """Format every device in *devices*, preserving order."""
    return [format_salt_id(device, salt_prefix) for device in devices]
