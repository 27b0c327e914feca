"""Blocking 42 API client.

This module provides :class:`FtClient`, the primary client used by the
``ftapi`` CLI. It wraps :class:`httpx.Client` and layers on:

- **Credential modes** -- built either from application credentials
  (:meth:`~ftapi.client.base.BaseFtClient.from_app`) or from a user token
  (:meth:`~ftapi.client.base.BaseFtClient.from_user`).
- **Application token cache** -- :meth:`FtClient.ensure_app_token` reuses
  the cached token until it is within five seconds of expiry, then
  fetches a new one. The slot is guarded by a :class:`threading.Lock`.
- **Error mapping** -- network failures become
  :class:`~ftapi.exceptions.TransportError`, malformed bodies
  :class:`~ftapi.exceptions.DecodeError`, and OAuth error envelopes
  :class:`~ftapi.exceptions.ApiError`.

No request is retried.

See Also:
    :class:`~ftapi.client.async_client.AsyncFtClient` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

import threading
from typing import Any, Optional

import httpx

from ftapi.client.base import ME_PATH, TOKEN_PATH, BaseFtClient
from ftapi.clock import Clock
from ftapi.credentials import AppCredentials, CredentialMode
from ftapi.exceptions import TransportBuildError, TransportError
from ftapi.models import ClientConfig, Token, User
from ftapi.output import get_output


class FtClient(BaseFtClient):
    """Synchronous client for the 42 API.

    The underlying :class:`httpx.Client` is built immediately, so a client
    is usable without a ``with`` block; using it as a context manager
    closes the connection pool on exit.

    Args:
        mode: The credential mode held for the client's lifetime.
        config: Base URL and request settings.
        clock: Time source for expiry checks.
        transport: Optional :class:`httpx.BaseTransport`, e.g. an
            :class:`httpx.MockTransport` in tests.

    Raises:
        TransportBuildError: If the HTTP client cannot be constructed.

    Example::

        with FtClient.from_app(uid, secret) as client:
            token = client.ensure_app_token()
    """

    def __init__(
        self,
        mode: CredentialMode,
        config: Optional[ClientConfig] = None,
        clock: Optional[Clock] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(mode, config, clock)
        self._token_lock = threading.Lock()
        try:
            self._client = httpx.Client(**self._client_options(transport))
        except (TypeError, ValueError, httpx.InvalidURL) as exc:
            raise TransportBuildError(f"Couldn't build the HTTP client: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> FtClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()

    # ------------------------------------------------------------------ #
    # Application tokens
    # ------------------------------------------------------------------ #

    def fetch_app_token(self, extra_data: bool = False) -> Token:
        """Fetch a new application token with the client-credentials grant.

        The returned token replaces whatever is in the cache.

        Args:
            extra_data: Reserved for token introspection data. Passing
                ``True`` raises :class:`~ftapi.exceptions.UnsupportedFeatureError`.

        Raises:
            WrongCredentialModeError: On a user-mode client.
            UnsupportedFeatureError: If *extra_data* is ``True``.
            ApiError: If the API rejects the credentials.
            TransportError: On network failure.
            DecodeError: If the token body is malformed.
        """
        app = self._require_app("fetch_app_token")
        self._check_extra_data(extra_data)
        token = self._request_app_token(app)
        with self._token_lock:
            app.cached_token = token
        return token

    def ensure_app_token(self) -> Token:
        """Return a valid cached application token, fetching one if needed.

        A request is sent only when the cache is empty or the cached token
        is expired (per the client's clock, with the five second margin).
        Concurrent callers serialize on the cache lock, so at most one of
        them refreshes.

        Raises:
            WrongCredentialModeError: On a user-mode client.
            ApiError, TransportError, DecodeError: As for :meth:`fetch_app_token`.
        """
        app = self._require_app("ensure_app_token")
        with self._token_lock:
            if self._token_is_fresh(app.cached_token):
                assert app.cached_token is not None
                return app.cached_token
            get_output().debug("Application token missing or expired, fetching a new one")
            app.cached_token = self._request_app_token(app)
            return app.cached_token

    # ------------------------------------------------------------------ #
    # User tokens and resources
    # ------------------------------------------------------------------ #

    def fetch_access_token(self, code: str, callback_url: str) -> Token:
        """Exchange an authorization code for a user token.

        Args:
            code: The ``code`` query parameter the API appended to the callback.
            callback_url: The same callback URL used to build the
                authorization URL.

        Raises:
            WrongCredentialModeError: On a user-mode client.
            ApiError: If the code is rejected (e.g. ``invalid_grant``).
            TransportError, DecodeError: On network or decoding failure.
        """
        app = self._require_app("fetch_access_token")
        response = self._send(
            "POST", TOKEN_PATH, data=self._authorization_code_form(app, code, callback_url)
        )
        return self._handle(response, Token)

    def fetch_user_data(self, token: Optional[Token] = None) -> User:
        """Fetch the profile of the user owning *token*.

        Args:
            token: A user token. May be omitted on a user-mode client, which
                then presents its own token.

        Raises:
            WrongCredentialModeError: If no token is given on an
                application-mode client.
            ApiError, TransportError, DecodeError: On failure.
        """
        token = self._resolve_user_token(token)
        response = self._send("GET", ME_PATH, headers=token.bearer_header())
        return self._handle(response, User)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _request_app_token(self, app: AppCredentials) -> Token:
        response = self._send("POST", TOKEN_PATH, data=self._client_credentials_form(app))
        return self._handle(response, Token)

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        get_output().debug(f"{method} {self.base_url}{path}")
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"Error while sending {method} {path}: {exc}") from exc
