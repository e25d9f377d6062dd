"""Shared pytest fixtures and configuration for the csalt test suite.

Guidelines
----------
* No internet access in any test — the user API is faked or served by
  ``httpx.MockTransport``.
* ``sudo salt`` is never launched — the runner is mocked.
* Config and token files live under ``tmp_path``, never in ``$HOME``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from csalt.cli.log_setup import HANDLER_NAME


@pytest.fixture(autouse=True)
def isolated_user_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config and token files at a scratch directory."""
    monkeypatch.setenv("CSALT_CONFIG", str(tmp_path / "cacophony-user.yaml"))
    monkeypatch.setenv("CSALT_TOKEN_FILE", str(tmp_path / ".cacophony-token"))
    return tmp_path


@pytest.fixture(autouse=True)
def detach_cli_log_handler() -> Iterator[None]:
    """Drop the handler ``configure_logging`` attaches during a test."""
    yield
    logger = logging.getLogger("csalt")
    for handler in list(logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
