"""Session resolution — which server, salt prefix and user to use.

Priority rules
--------------
Server:   ``--live`` / ``--test`` > ``--server`` alias > saved
          ``server-url`` > the live server.
Prefix:   ``--no-prefix`` > ``--prefix`` > ``-t`` > the server's prefix.
Username: ``--user`` > the alias username > the saved username > an
          interactive prompt (saved back to the config).

The saved token for the resolved user is looked up last.  A missing or
unreadable token only means the run starts unauthenticated.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from csalt.core.models import SessionContext, SessionOptions, UserConfig
from csalt.core.protocols import ConfigStore, CredentialPrompter, TokenStore
from csalt.core.salt_ids import TEST_PREFIX
from csalt.exceptions import CsaltError, ServerNotFoundError

logger = logging.getLogger(__name__)

LIVE_API_HOST: str = "api.cacophony.org.nz"
TEST_API_HOST: str = "api-test.cacophony.org.nz"

LIVE_SERVER_URL: str = f"https://{LIVE_API_HOST}"
TEST_SERVER_URL: str = f"https://{TEST_API_HOST}"


def resolve_server(
    options: SessionOptions,
    config: UserConfig,
) -> tuple[str, str, str]:
    """Return ``(server_url, salt_prefix, alias_username)``.

    Raises
    ------
    ServerNotFoundError
        When ``--server`` names an alias the config does not define.
    """
    if options.live_server:
        return LIVE_SERVER_URL, "", ""
    if options.test_server:
        return TEST_SERVER_URL, TEST_PREFIX, ""
    if options.server:
        alias = config.servers.get(options.server)
        if alias is None:
            raise ServerNotFoundError(options.server)
        return alias.url, alias.salt_prefix, alias.username
    return config.server_url or LIVE_SERVER_URL, "", ""


def resolve_salt_prefix(options: SessionOptions, server_prefix: str) -> str:
    """Apply the prefix override flags on top of *server_prefix*."""
    if options.no_prefix:
        return ""
    if options.prefix is not None:
        return options.prefix
    if options.test_prefix:
        return TEST_PREFIX
    return server_prefix


def resolve_username(
    options: SessionOptions,
    alias_username: str,
    config: UserConfig,
    config_store: ConfigStore,
    prompter: CredentialPrompter,
) -> str:
    """Pick the username, prompting and saving it when none is known."""
    if options.user:
        return options.user
    if alias_username:
        return alias_username
    if config.username:
        return config.username

    username = prompter.ask_username()
    try:
        config_store.save(replace(config, username=username))
    except CsaltError as exc:
        logger.warning("Error saving config %s", exc)
    return username


def resolve_session(
    options: SessionOptions,
    config_store: ConfigStore,
    token_store: TokenStore,
    prompter: CredentialPrompter,
) -> SessionContext:
    """Build the :class:`SessionContext` for this run."""
    config = config_store.load()
    server_url, server_prefix, alias_username = resolve_server(options, config)
    salt_prefix = resolve_salt_prefix(options, server_prefix)
    username = resolve_username(
        options, alias_username, config, config_store, prompter,
    )

    token: str | None = None
    try:
        token = token_store.read_token(username)
    except CsaltError as exc:
        logger.debug("ReadToken error %s", exc)
    if token is None:
        logger.debug("No saved token for %s", username)

    return SessionContext(
        server_url=server_url,
        username=username,
        salt_prefix=salt_prefix,
        token=token,
        debug=options.debug,
        verbose=options.verbose,
    )
