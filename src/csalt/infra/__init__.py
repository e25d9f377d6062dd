"""Infrastructure layer — external system integration.

This layer wraps all interaction with the Cacophony user API, the local
config and token files, and the ``sudo salt`` process.  Every raw
third-party exception is caught here and re-raised as a
:class:`~csalt.exceptions.CsaltError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
"""

from csalt.infra.salt_runner import SudoSaltRunner
from csalt.infra.token_store import YamlTokenStore
from csalt.infra.user_api import CacophonyUserAPI
from csalt.infra.user_config import YamlConfigStore

__all__: list[str] = [
    "CacophonyUserAPI",
    "SudoSaltRunner",
    "YamlConfigStore",
    "YamlTokenStore",
]
