"""Core / service layer — pure business logic and data transformations.

Rules
-----
* No ``print()`` calls.
* No filesystem, network or process I/O.
* No imports from ``cli`` or ``infra``.
"""

from csalt.core.dispatch import DispatchMode, SaltDispatcher, plan_dispatch
from csalt.core.models import (
    DeviceReference,
    ParsedQuery,
    ResolvedDevice,
    SessionContext,
    SessionOptions,
    TranslationResult,
)
from csalt.core.query_parser import parse_device_query
from csalt.core.translation_service import TranslationService

__all__: list[str] = [
    "DeviceReference",
    "DispatchMode",
    "ParsedQuery",
    "ResolvedDevice",
    "SaltDispatcher",
    "SessionContext",
    "SessionOptions",
    "TranslationResult",
    "TranslationService",
    "parse_device_query",
    "plan_dispatch",
]
