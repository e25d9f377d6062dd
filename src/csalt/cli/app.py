"""CLI application entry point and command routing for csalt.

This module is the **sole error boundary** for the entire application.
It catches :class:`~csalt.exceptions.CsaltError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via
Rich and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — parsing, session resolution,
  translation and dispatch are delegated to the core layer.
* This module is the only place that wires concrete infra adapters
  into core services, and the only place that translates between the
  domain world and the OS process exit code.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from csalt.cli import exit_codes, report
from csalt.cli.console import console, escape
from csalt.cli.log_setup import configure_logging
from csalt.core.dispatch import DispatchMode, SaltDispatcher, plan_dispatch, select_targets
from csalt.core.models import ParsedQuery, SessionOptions
from csalt.core.query_parser import parse_device_query
from csalt.core.salt_ids import format_salt_ids
from csalt.core.session import resolve_session
from csalt.core.translation_service import TranslationService
from csalt.exceptions import AmbiguousDeviceError, CsaltError, SaltCommandError
from csalt.version import __version__

DESCRIPTION = "Wrapper for salt that targets Cacophony devices by name."

EPILOG = """\
DEVICEINFO:
  A comma separated list of devices or groups to translate.
  - devices are groupname:devicename, or devicename (matches any group)
  - groupname: is translated into every device in the group

  If only DEVICEINFO is supplied it is passed to salt unchanged.
  Options must come before DEVICEINFO; everything after it is passed
  to salt.

  Once authenticated, a token is saved to ~/.cacophony-token.

examples:
  csalt "gp" test.ping
      run test.ping on every device named gp, in any group
  csalt "group1:,group2:gp" test.ping
      run test.ping on all devices in group1 and on gp in group2
"""


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="csalt",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-s", "--show", action="store_true",
        help="print salt ids for device names",
    )
    parser.add_argument(
        "--server", metavar="NAME",
        help="server alias to use, defined in cacophony-user.yaml",
    )
    server_group = parser.add_mutually_exclusive_group()
    server_group.add_argument(
        "--test", dest="test_server", action="store_true",
        help="connect to the test api server",
    )
    server_group.add_argument(
        "--live", dest="live_server", action="store_true",
        help="connect to the live api server",
    )
    parser.add_argument(
        "-t", "--test-prefix", action="store_true",
        help="add -test to salt names e.g. pi-test-xxx",
    )
    parser.add_argument(
        "--prefix", metavar="PREFIX",
        help="use PREFIX in salt names e.g. pi-PREFIX-xxx",
    )
    parser.add_argument(
        "--no-prefix", action="store_true",
        help="never prefix salt names e.g. pi-xxx",
    )
    parser.add_argument(
        "--user", metavar="USER",
        help="username to authenticate with server",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="debug")
    parser.add_argument("-v", "--verbose", action="store_true", help="verbose")
    parser.add_argument(
        "deviceinfo", nargs="?", default="", metavar="DEVICEINFO",
        help="devices and groups to translate, see below",
    )
    parser.add_argument(
        "commands", nargs=argparse.REMAINDER, metavar="COMMANDS",
        help="salt function and arguments",
    )
    return parser


def _session_options(args: argparse.Namespace) -> SessionOptions:
    return SessionOptions(
        server=args.server,
        test_server=args.test_server,
        live_server=args.live_server,
        test_prefix=args.test_prefix,
        prefix=args.prefix,
        no_prefix=args.no_prefix,
        user=args.user,
        debug=args.debug,
        verbose=args.verbose,
    )


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_translate(
    mode: DispatchMode,
    query: ParsedQuery,
    commands: Sequence[str],
    args: argparse.Namespace,
    dispatcher: SaltDispatcher,
) -> int:
    """Translate names and run salt on the resulting minion ids.

    Flow:
    1. Resolve server, prefix, user and saved token.
    2. Translate the query, authenticating when required.
    3. Reject ambiguous name matches and empty results.
    4. Print the ids (show mode) and/or run salt on them.
    """
    from csalt.cli.prompts import QuestionaryPrompter
    from csalt.infra.token_store import YamlTokenStore
    from csalt.infra.user_api import CacophonyUserAPI
    from csalt.infra.user_config import YamlConfigStore

    prompter = QuestionaryPrompter()
    token_store = YamlTokenStore()
    session = resolve_session(
        _session_options(args), YamlConfigStore(), token_store, prompter,
    )

    if session.debug:
        report.show_session(session)
    if session.verbose:
        report.show_query(query)

    with CacophonyUserAPI(session.server_url, session.username, session.token) as api:
        service = TranslationService(api, prompter, token_store)
        result = service.translate(query)

    if session.verbose:
        report.show_translation(result)

    devices = select_targets(result, query)

    if args.show:
        report.show_salt_ids(
            format_salt_ids(devices, session.salt_prefix), verbose=session.verbose,
        )
    if mode is DispatchMode.TRANSLATE:
        dispatcher.run_for_devices(devices, commands, session.salt_prefix)
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the csalt CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    from csalt.infra.salt_runner import SudoSaltRunner

    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(debug=args.debug, verbose=args.verbose)

    query = parse_device_query(args.deviceinfo)
    commands: list[str] = list(args.commands)
    mode = plan_dispatch(query, commands, show=args.show)
    dispatcher = SaltDispatcher(SudoSaltRunner())

    if mode is DispatchMode.RAW_PASSTHROUGH:
        dispatcher.run_raw(query)
        return exit_codes.SUCCESS
    if mode is DispatchMode.DIRECT:
        dispatcher.run_direct(query, commands)
        return exit_codes.SUCCESS
    return _handle_translate(mode, query, commands, args, dispatcher)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except SaltCommandError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(exc)}")
        # Signal exits are negative; only a real status is passed through.
        sys.exit(exc.returncode if exc.returncode > 0 else exit_codes.GENERAL_ERROR)
    except CsaltError as exc:
        if isinstance(exc, AmbiguousDeviceError):
            report.show_ambiguity(exc)
        console.print(f"[bold red]Error:[/bold red] {escape(exc)}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape(exc)}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
