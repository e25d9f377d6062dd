"""End-to-end tests for CLI routing (cli/app.py).

The API client, prompter and salt runner are patched at their import
sites — no network, no terminal interaction, no process launch.

Coverage:
* Pass-through and direct modes skip translation entirely
* Translation builds the right salt argv and salt prefix
* Show mode prints ids without running salt
* Ambiguity and repeated authentication failures never reach salt
* The ``cli()`` error boundary maps errors to exit codes
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from csalt.cli import exit_codes
from csalt.cli.app import cli, main
from csalt.core.models import ResolvedDevice, TranslationResult
from csalt.exceptions import (
    AmbiguousDeviceError,
    AuthenticationError,
    InsufficientArgumentsError,
    SaltCommandError,
    ServerNotFoundError,
)


def _dev(group: str, name: str, salt_id: int) -> ResolvedDevice:
    return ResolvedDevice(group_name=group, device_name=name, salt_id=salt_id)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def user_config(isolated_user_files: Path) -> Path:
    path = isolated_user_files / "cacophony-user.yaml"
    path.write_text(
        "username: alice\n"
        "servers:\n"
        "  dev:\n"
        "    url: http://localhost:1080\n"
        "    salt-prefix: dev\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def runner() -> Iterator[MagicMock]:
    with patch("csalt.infra.salt_runner.SudoSaltRunner") as runner_cls:
        yield runner_cls.return_value


@pytest.fixture
def api() -> Iterator[MagicMock]:
    fake = MagicMock()
    fake.username = "alice"
    fake.authenticated = False
    fake.has_token.return_value = True
    fake.request_token.return_value = "JWT long"
    fake.translate_names.return_value = TranslationResult(
        name_matches=(_dev("group2", "gp", 5),),
    )
    with patch("csalt.infra.user_api.CacophonyUserAPI") as api_cls:
        api_cls.return_value.__enter__.return_value = fake
        fake.constructor = api_cls
        yield fake


@pytest.fixture
def prompter() -> Iterator[MagicMock]:
    with patch("csalt.cli.prompts.QuestionaryPrompter") as prompter_cls:
        prompter_cls.return_value.ask_password.return_value = "secret"
        yield prompter_cls.return_value


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------

class TestBootstrap:
    def test_version_flag(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0

    def test_help_flag(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0
        assert "groupname:devicename" in capsys.readouterr().out

    def test_no_args_is_insufficient(self, runner: MagicMock) -> None:
        with pytest.raises(InsufficientArgumentsError):
            main([])
        runner.run.assert_not_called()

    def test_test_and_live_are_exclusive(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--test", "--live", "gp", "test.ping"])
        assert exc_info.value.code == 2


# ---------------------------------------------------------------------------
# Modes without translation
# ---------------------------------------------------------------------------

class TestPassThrough:
    def test_bare_query_forwarded_verbatim(self, runner: MagicMock, api: MagicMock) -> None:
        assert main(["gp"]) == exit_codes.SUCCESS
        runner.run.assert_called_once_with(["gp"])
        api.constructor.assert_not_called()

    def test_empty_query_forwards_commands(self, runner: MagicMock, api: MagicMock) -> None:
        assert main(["", "test.ping"]) == exit_codes.SUCCESS
        runner.run.assert_called_once_with(["test.ping"])
        api.translate_names.assert_not_called()

    def test_structured_query_without_commands_fails(self, runner: MagicMock) -> None:
        with pytest.raises(InsufficientArgumentsError):
            main(["group1:,gp"])
        runner.run.assert_not_called()


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------

class TestTranslate:
    def test_single_device(
        self, runner: MagicMock, api: MagicMock, prompter: MagicMock,
    ) -> None:
        assert main(["gp", "test.ping"]) == exit_codes.SUCCESS
        runner.run.assert_called_once_with(["pi-5", "test.ping"])
        prompter.ask_password.assert_not_called()

    def test_commands_keep_their_flags(
        self, runner: MagicMock, api: MagicMock, prompter: MagicMock,
    ) -> None:
        main(["gp", "cmd.run", "ls -l", "--timeout=5"])
        runner.run.assert_called_once_with(["pi-5", "cmd.run", "ls -l", "--timeout=5"])

    def test_test_server_prefix_and_list_flag(
        self, runner: MagicMock, api: MagicMock, prompter: MagicMock,
    ) -> None:
        api.translate_names.return_value = TranslationResult(
            devices=(_dev("group1", "a", 1), _dev("group1", "b", 2)),
            name_matches=(_dev("group2", "gp", 5),),
        )
        main(["--test", "group1:,group2:gp", "test.ping"])

        runner.run.assert_called_once_with(["-L", "pi-test-1 pi-test-2 pi-test-5", "test.ping"])
        assert api.constructor.call_args.args[0] == "https://api-test.cacophony.org.nz"

    def test_server_alias_prefix(
        self, runner: MagicMock, api: MagicMock, prompter: MagicMock,
    ) -> None:
        main(["--server", "dev", "gp", "test.ping"])
        runner.run.assert_called_once_with(["pi-dev-5", "test.ping"])

    def test_no_prefix_override(
        self, runner: MagicMock, api: MagicMock, prompter: MagicMock,
    ) -> None:
        main(["--test", "--no-prefix", "gp", "test.ping"])
        runner.run.assert_called_once_with(["pi-5", "test.ping"])

    def test_unknown_server_alias(self, runner: MagicMock, api: MagicMock) -> None:
        with pytest.raises(ServerNotFoundError, match="nope"):
            main(["--server", "nope", "gp", "test.ping"])
        api.translate_names.assert_not_called()

    def test_show_only(
        self,
        runner: MagicMock,
        api: MagicMock,
        prompter: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert main(["-s", "gp"]) == exit_codes.SUCCESS
        runner.run.assert_not_called()
        captured = capsys.readouterr()
        assert captured.out == "pi-5\n"
        assert "pi-5" not in captured.err

    def test_show_verbose_labels_ids_on_stderr(
        self,
        runner: MagicMock,
        api: MagicMock,
        prompter: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        main(["-s", "-v", "gp"])
        captured = capsys.readouterr()
        assert captured.out == "pi-5\n"
        assert "translated salt names pi-5" in captured.err

    def test_verbose_lists_lookups(
        self,
        runner: MagicMock,
        api: MagicMock,
        prompter: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        main(["-v", "group1:,gp", "test.ping"])
        err = capsys.readouterr().err
        assert "Looking for device by name gp" in err
        assert "Looking for devices in group group1" in err
        assert "group2:gp saltid: 5" in err

    def test_ambiguous_names_never_reach_salt(
        self, runner: MagicMock, api: MagicMock, prompter: MagicMock,
    ) -> None:
        api.translate_names.return_value = TranslationResult(
            name_matches=(_dev("g1", "gp", 5), _dev("g2", "gp", 9)),
        )
        with pytest.raises(AmbiguousDeviceError):
            main(["gp", "test.ping"])
        runner.run.assert_not_called()

    def test_repeated_authentication_failure_never_reaches_salt(
        self, runner: MagicMock, api: MagicMock, prompter: MagicMock,
    ) -> None:
        api.translate_names.side_effect = AuthenticationError("rejected")
        with pytest.raises(AuthenticationError):
            main(["gp", "test.ping"])
        assert api.translate_names.call_count == 2
        runner.run.assert_not_called()

    def test_prompts_for_missing_username(
        self,
        user_config: Path,
        runner: MagicMock,
        api: MagicMock,
        prompter: MagicMock,
    ) -> None:
        user_config.write_text("servers: {}\n", encoding="utf-8")
        prompter.ask_username.return_value = "newbie"

        main(["gp", "test.ping"])

        assert api.constructor.call_args.args[1] == "newbie"
        assert "username: newbie" in user_config.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

class TestErrorBoundary:
    def test_success(self) -> None:
        with patch("csalt.cli.app.main", return_value=exit_codes.SUCCESS):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.SUCCESS

    def test_salt_exit_status_passed_through(self) -> None:
        with patch("csalt.cli.app.main", side_effect=SaltCommandError(3, "salt")):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == 3

    def test_salt_killed_by_signal(self) -> None:
        with patch("csalt.cli.app.main", side_effect=SaltCommandError(-15, "salt")):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.GENERAL_ERROR

    def test_ambiguity_report(self, capsys: pytest.CaptureFixture[str]) -> None:
        error = AmbiguousDeviceError({"gp": (_dev("g1", "gp", 5), _dev("g2", "gp", 9))})
        with patch("csalt.cli.app.main", side_effect=error):
            with pytest.raises(SystemExit) as exc_info:
                cli()

        assert exc_info.value.code == exit_codes.GENERAL_ERROR
        err = capsys.readouterr().err
        assert "Device gp matches:" in err
        assert "g1:gp" in err
        assert "g2:gp" in err
        assert "1 Duplicate" in err

    def test_keyboard_interrupt(self) -> None:
        with patch("csalt.cli.app.main", side_effect=KeyboardInterrupt):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.KEYBOARD_INTERRUPT

    def test_unexpected_error(self) -> None:
        with patch("csalt.cli.app.main", side_effect=RuntimeError("boom")):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.UNEXPECTED_ERROR
