"""Detection of ambiguous device-name matches.

A device name queried without a group can match devices in several
groups.  Running salt against all of them is almost never what the
user meant, so any such ambiguity fails the whole batch.
"""

from __future__ import annotations

from collections.abc import Iterable

from csalt.core.models import ParsedQuery, ResolvedDevice, TranslationResult
from csalt.exceptions import AmbiguousDeviceError


def group_by_name(
    devices: Iterable[ResolvedDevice],
) -> dict[str, list[ResolvedDevice]]:
    """Bucket *devices* by bare device name, dropping repeated salt ids."""
    buckets: dict[str, list[ResolvedDevice]] = {}
    for device in devices:
        bucket = buckets.setdefault(device.device_name, [])
        if all(other.salt_id != device.salt_id for other in bucket):
            bucket.append(device)
    return buckets


def find_ambiguous_names(
    devices: Iterable[ResolvedDevice],
    query: ParsedQuery | None = None,
) -> dict[str, tuple[ResolvedDevice, ...]]:
    """Return every device name that matched more than one device.

    When *query* is given, names that were only ever queried as
    ``group:device`` are never reported: a fully qualified term cannot
    be ambiguous.
    """
    unqualified = query.unqualified_names if query is not None else None
    return {
        name: tuple(bucket)
        for name, bucket in group_by_name(devices).items()
        if len(bucket) > 1 and (unqualified is None or name in unqualified)
    }


def check_for_duplicates(
    result: TranslationResult,
    query: ParsedQuery | None = None,
) -> None:
    """Raise :class:`AmbiguousDeviceError` if any name match is ambiguous.

    Only ``result.name_matches`` are inspected; group members are
    expected to share names across groups.
    """
    ambiguous = find_ambiguous_names(result.name_matches, query)
    if ambiguous:
        raise AmbiguousDeviceError(ambiguous)
