"""Logging configuration for the ``csalt`` logger tree.

Core and infra modules log through ``logging.getLogger(__name__)``; the
CLI decides where those records go.  Records are rendered by Rich's
``RichHandler`` on the stderr console, or by a plain stream handler
when Rich is unavailable.
"""

from __future__ import annotations

import logging
import sys

from csalt.cli.console import get_rich_console
from csalt.exceptions import EnvironmentError

HANDLER_NAME: str = "csalt-cli"


def log_level(*, debug: bool = False, verbose: bool = False) -> int:
    """``DEBUG`` for ``-d``, ``INFO`` for ``-v``, else ``WARNING``."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def _build_handler(debug: bool) -> logging.Handler:
    try:
        from rich.logging import RichHandler

        return RichHandler(
            console=get_rich_console(),
            show_time=debug,
            show_path=debug,
            markup=False,
        )
    except (ModuleNotFoundError, EnvironmentError):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        return handler


def configure_logging(*, debug: bool = False, verbose: bool = False) -> None:
    """Attach a single CLI handler to the ``csalt`` logger.

    Safe to call repeatedly: a handler installed by a previous call is
    replaced.
    """
    logger = logging.getLogger("csalt")
    for handler in list(logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            logger.removeHandler(handler)

    handler = _build_handler(debug)
    handler.set_name(HANDLER_NAME)
    logger.addHandler(handler)
    logger.setLevel(log_level(debug=debug, verbose=verbose))
