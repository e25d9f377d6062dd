"""Interactive username and password prompts.

Implements :class:`~csalt.core.protocols.CredentialPrompter` with
questionary.  questionary is imported lazily so that ``--help`` and
pass-through runs work without it.
"""

from __future__ import annotations

from typing import Any

from csalt.cli.console import console, escape
from csalt.exceptions import EnvironmentError, PromptCancelledError


def _import_questionary() -> Any:
    """Import questionary lazily for interactive prompts."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def _validate_username(text: str) -> bool | str:
    return bool(text.strip()) or "Username must not be empty"


class QuestionaryPrompter:
    """Asks for credentials on the terminal.

    Both prompts return ``None`` from questionary on Ctrl+C / Esc, which
    is turned into :class:`PromptCancelledError`.
    """

    def ask_username(self) -> str:
        questionary = _import_questionary()

        console.print("[yellow]User configuration missing[/yellow]")
        username: str | None = questionary.text(
            "Enter Username:",
            validate=_validate_username,
        ).ask()
        if username is None:
            raise PromptCancelledError(
                "No username entered.",
                hint="Pass --user or set 'username' in cacophony-user.yaml.",
            )
        return username.strip()

    def ask_password(self, username: str, *, retry: bool = False) -> str:
        questionary = _import_questionary()

        if retry:
            console.print("[red]Incorrect user/password try again[/red]")
        else:
            console.print(f"Authentication is required for [bold]{escape(username)}[/bold]")
        password: str | None = questionary.password("Enter Password:").ask()
        if password is None:
            raise PromptCancelledError("No password entered.")
        return password
