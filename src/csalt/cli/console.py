"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``) remain
functional even when Rich is not installed.

Messages, prompts and logs go to :data:`console` (stderr).  Only the
salt ids printed by ``--show`` go to :data:`stdout_console`, so they can
be piped into other commands.
"""

from __future__ import annotations

import sys
from typing import Any

from csalt.exceptions import EnvironmentError


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise EnvironmentError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console(*, stderr: bool = True) -> Any:
	"""Create a Rich console instance targeting stderr (or stdout).

	Highlighting is off so device names and salt ids print as typed.
	The stdout console never wraps lines.
	"""
	console_class = _load_rich_console_class()
	return console_class(stderr=stderr, highlight=False, soft_wrap=not stderr)


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def __init__(self, *, stderr: bool = True) -> None:
		self._stderr = stderr

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain print."""
		try:
			rich_console = get_rich_console(stderr=self._stderr)
		except EnvironmentError:
			print(*objects, file=sys.stderr if self._stderr else sys.stdout)
			return
		rich_console.print(*objects)


console = _ConsoleProxy()
stdout_console = _ConsoleProxy(stderr=False)


def escape(text: object) -> str:
	"""Escape Rich markup in *text* (device names, server messages).

	Without Rich the proxy prints plain text, so nothing needs escaping.
	"""
	try:
		from rich.markup import escape as rich_escape
	except ModuleNotFoundError:
		return str(text)
	return rich_escape(str(text))
