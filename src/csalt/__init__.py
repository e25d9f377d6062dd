"""csalt — salt wrapper that targets Cacophony devices by name.

Device and group names are translated into salt minion ids through the
Cacophony user API before ``sudo salt`` is invoked.
"""

from csalt.version import __version__

__all__: list[str] = ["__version__"]
