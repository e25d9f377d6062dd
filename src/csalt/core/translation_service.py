"""Core translation service — authentication cycle and name lookup.

The service depends on a :class:`~csalt.core.protocols.NameTranslator`
(the user API client), a :class:`~csalt.core.protocols.CredentialPrompter`
and a :class:`~csalt.core.protocols.TokenStore`, all injected at
construction time.

Guarantees
----------
* A translation rejected for authentication is retried exactly once,
  after a fresh authentication cycle.
* At most :data:`MAX_PASSWORD_ATTEMPTS` passwords are tried per cycle.
* Only :class:`~csalt.exceptions.CsaltError` subclasses escape.
"""

from __future__ import annotations

import logging

from csalt.core.models import ParsedQuery, TranslationResult
from csalt.core.protocols import CredentialPrompter, NameTranslator, TokenStore
from csalt.exceptions import (
    AuthenticationError,
    CsaltError,
    DirectoryAPIError,
    MaxPasswordAttemptsError,
)

logger = logging.getLogger(__name__)

MAX_PASSWORD_ATTEMPTS: int = 3
TOKEN_TTL: str = "long"


class TranslationService:
    """Resolves parsed queries, authenticating on demand.

    Parameters
    ----------
    api:
        Any object satisfying the :class:`NameTranslator` protocol.
    prompter:
        Source of passwords when authentication is required.
    token_store:
        Where the long-lived token is saved after a password login.
    """

    def __init__(
        self,
        api: NameTranslator,
        prompter: CredentialPrompter,
        token_store: TokenStore,
        *,
        max_password_attempts: int = MAX_PASSWORD_ATTEMPTS,
    ) -> None:
        self._api: NameTranslator = api
        self._prompter: CredentialPrompter = prompter
        self._token_store: TokenStore = token_store
        self._max_password_attempts: int = max_password_attempts

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def translate(self, query: ParsedQuery) -> TranslationResult:
        """Resolve every device and group reference in *query*.

        Raises
        ------
        AuthenticationError
            When the retried translation is rejected again, or when the
            password cycle fails.
        DirectoryAPIError
            For transport and validation failures (never retried).
        """
        if not self._api.has_token():
            self.authenticate_user()

        try:
            return self._translate(query)
        except AuthenticationError:
            logger.info("Token rejected for %s, re-authenticating", self._api.username)
            self.authenticate_user(fresh=True)
        return self._translate(query)

    def authenticate_user(self, *, fresh: bool = False) -> None:
        """Log in when needed, then request and save a long-lived token.

        With *fresh* the password is asked for even if the client is
        already logged in.
        """
        if fresh or not self._api.authenticated:
            self._request_authentication()

        token = self._api.request_token(TOKEN_TTL)
        try:
            self._token_store.save_token(self._api.username, token, TOKEN_TTL)
        except CsaltError as exc:
            logger.warning("Could not save token: %s", exc)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _request_authentication(self) -> None:
        """Prompt for a password until the API accepts one."""
        username = self._api.username
        logger.debug("Authentication is required for %s", username)
        for attempt in range(self._max_password_attempts):
            password = self._prompter.ask_password(username, retry=attempt > 0)
            try:
                self._api.authenticate(password)
            except AuthenticationError:
                logger.debug("Password attempt %d rejected", attempt + 1)
                continue
            return
        raise MaxPasswordAttemptsError(
            "Max password attempts",
            hint=f"Check the password for {username} on {self._api.server_url}.",
        )

    def _translate(self, query: ParsedQuery) -> TranslationResult:
        """Call the API and ensure only our exceptions escape."""
        try:
            return self._api.translate_names(query.groups, query.devices)
        except CsaltError:
            raise
        except Exception as exc:
            raise DirectoryAPIError(
                f"Unexpected translation error: {exc}",
            ) from exc
