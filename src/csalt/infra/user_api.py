"""httpx-backed client for the Cacophony user API.

This module is the **only** place in the codebase that talks HTTP.  All
httpx exceptions are caught here and re-raised as
:class:`~csalt.exceptions.DirectoryAPIError`; 401 responses (and 403 on
the login endpoints) become :class:`~csalt.exceptions.AuthenticationError`
so the core can run a fresh authentication cycle.

Endpoints
---------
* ``POST /authenticate_user``   — username/password login
* ``POST /token``               — long-lived token for the logged-in user
* ``GET  /api/v1/devices/query`` — device/group name translation
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

import httpx

from csalt.core.models import DeviceReference, ResolvedDevice, TranslationResult
from csalt.exceptions import AuthenticationError, DirectoryAPIError
from csalt.version import __version__

logger = logging.getLogger(__name__)

AUTHENTICATE_PATH: str = "/authenticate_user"
TOKEN_PATH: str = "/token"
DEVICE_QUERY_PATH: str = "/api/v1/devices/query"

_LOGIN_AUTH_STATUSES: frozenset[int] = frozenset({401, 403})
# A 403 on the query means no access to those devices, not a bad token.
_QUERY_AUTH_STATUSES: frozenset[int] = frozenset({401})


class CacophonyUserAPI:
    """Concrete :class:`~csalt.core.protocols.NameTranslator`.

    Usage::

        with CacophonyUserAPI("https://api.cacophony.org.nz", "alice") as api:
            api.authenticate(password)
            result = api.translate_names(["group1"], [])

    Parameters
    ----------
    server_url:
        Base URL of the API server.
    username:
        User to authenticate as.
    token:
        Previously saved token, if any.
    client:
        Optional pre-built :class:`httpx.Client` (used by the tests to
        inject a ``MockTransport``).
    """

    def __init__(
        self,
        server_url: str,
        username: str,
        token: str | None = None,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        self._server_url: str = server_url.rstrip("/")
        self._username: str = username
        self._token: str | None = token
        self._authenticated: bool = False
        self._client: httpx.Client = client or httpx.Client(
            headers={"User-Agent": f"csalt/{__version__}"},
        )

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> CacophonyUserAPI:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    @property
    def server_url(self) -> str:
        return self._server_url

    @property
    def username(self) -> str:
        return self._username

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    def has_token(self) -> bool:
        return bool(self._token)

    def logout(self) -> None:
        """Forget the token and the login, so the next cycle prompts again."""
        self._token = None
        self._authenticated = False

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def authenticate(self, password: str) -> None:
        """Log in with *password* and keep the returned token.

        Raises
        ------
        AuthenticationError
            When the server rejects the username/password pair.
        DirectoryAPIError
            For transport errors and malformed responses.
        """
        body = self._request(
            "POST",
            AUTHENTICATE_PATH,
            authorize=False,
            json={"nameOrEmail": self._username, "password": password},
            auth_statuses=_LOGIN_AUTH_STATUSES,
        )
        self._token = self._require_token(body)
        self._authenticated = True
        logger.debug("Authenticated %s against %s", self._username, self._server_url)

    def request_token(self, ttl: str) -> str:
        """Exchange the current login for a token with lifetime *ttl*."""
        body = self._request(
            "POST", TOKEN_PATH, json={"ttl": ttl}, auth_statuses=_LOGIN_AUTH_STATUSES,
        )
        self._token = self._require_token(body)
        return self._token

    def translate_names(
        self,
        groups: Sequence[str],
        devices: Sequence[DeviceReference],
    ) -> TranslationResult:
        """Resolve *groups* and *devices* into devices with salt ids.

        Raises
        ------
        AuthenticationError
            When there is no token or the server rejects it.  The
            session is logged out so a fresh login is required.
        DirectoryAPIError
            For transport errors and malformed responses.
        """
        if not self._token:
            raise AuthenticationError(f"Authentication is required for {self._username}")

        params = {
            "devices": json.dumps(
                [{"groupname": d.group_name, "devicename": d.device_name} for d in devices]
            ),
            "groups": json.dumps(list(groups)),
        }
        try:
            body = self._request(
                "GET",
                DEVICE_QUERY_PATH,
                params=params,
                auth_statuses=_QUERY_AUTH_STATUSES,
            )
        except AuthenticationError:
            self.logout()
            raise

        return TranslationResult(
            devices=self._parse_devices(body.get("devices")),
            name_matches=self._parse_devices(body.get("nameMatches")),
        )

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        authorize: bool = True,
        auth_statuses: frozenset[int] = _LOGIN_AUTH_STATUSES,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON object body."""
        url = f"{self._server_url}{path}"
        headers: dict[str, str] = {}
        if authorize and self._token:
            headers["Authorization"] = self._token

        logger.debug("%s %s", method, url)
        try:
            response = self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise DirectoryAPIError(
                f"Request to {url} failed: {exc}",
                hint="Check your network connection and the server URL.",
            ) from exc

        body = self._decode(response)
        if response.status_code in auth_statuses:
            raise AuthenticationError(
                self._messages(body) or "Incorrect user/password",
            )
        if response.is_error:
            raise DirectoryAPIError(
                f"{method} {path} failed ({response.status_code}): "
                f"{self._messages(body) or response.reason_phrase}",
                status_code=response.status_code,
            )
        if body is None:
            raise DirectoryAPIError(
                f"{method} {path} returned a non-JSON response",
                status_code=response.status_code,
            )
        return body

    @staticmethod
    def _decode(response: httpx.Response) -> dict[str, Any] | None:
        try:
            body: Any = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    @staticmethod
    def _messages(body: dict[str, Any] | None) -> str:
        if not body:
            return ""
        messages = body.get("messages")
        if isinstance(messages, list):
            return "; ".join(str(m) for m in messages)
        message = body.get("message")
        return str(message) if message else ""

    @staticmethod
    def _require_token(body: dict[str, Any]) -> str:
        token = body.get("token")
        if not token:
            raise DirectoryAPIError("Server response did not contain a token")
        return str(token)

    @staticmethod
    def _parse_devices(raw: object) -> tuple[ResolvedDevice, ...]:
        """Convert raw device dicts, skipping entries without a salt id."""
        if raw is None:
            return ()
        if not isinstance(raw, list):
            raise DirectoryAPIError("Malformed device list in server response")

        devices: list[ResolvedDevice] = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            salt_id = entry.get("saltId")
            if salt_id is None:
                logger.warning(
                    "Device %s:%s has no salt id, skipping",
                    entry.get("groupname", ""),
                    entry.get("devicename", ""),
                )
                continue
            try:
                salt_id = int(salt_id)
            except (TypeError, ValueError) as exc:
                raise DirectoryAPIError(f"Invalid salt id {salt_id!r}") from exc
            devices.append(
                ResolvedDevice(
                    group_name=str(entry.get("groupname", "")),
                    device_name=str(entry.get("devicename", "")),
                    salt_id=salt_id,
                )
            )
        return tuple(devices)
