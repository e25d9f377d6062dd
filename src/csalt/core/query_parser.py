"""Parsing of the DEVICEINFO argument.

The argument is a comma separated list of terms, each split on its
first colon:

* ``name``        — device ``name`` in any group
* ``:name``       — same, with an explicit empty group marker
* ``group:name``  — device ``name`` in ``group``
* ``group:``      — every device in ``group``

Parsing is total: malformed input never raises, it only degrades to
best-effort classification of each term.
"""

from __future__ import annotations

from csalt.core.models import DeviceReference, ParsedQuery


def _classify_term(term: str) -> DeviceReference | str | None:
    """Classify one term as a device reference, a group name or nothing."""
    group, sep, name = term.partition(":")
    if not sep:
        return DeviceReference(device_name=term) if term else None
    if not group:
        return DeviceReference(device_name=name) if name else None
    if not name:
        return group
    return DeviceReference(device_name=name, group_name=group)


def parse_device_query(raw: str) -> ParsedQuery:
    """Parse *raw* into device and group references.

    Examples
    --------
    >>> parse_device_query("group1:,group2:gp").groups
    ('group1',)
    """
    devices: list[DeviceReference] = []
    groups: list[str] = []
    for term in raw.strip().split(","):
        ref = _classify_term(term)
        if ref is None:
            continue
        if isinstance(ref, DeviceReference):
            devices.append(ref)
        else:
            groups.append(ref)
    return ParsedQuery(devices=tuple(devices), groups=tuple(groups), raw_text=raw)
