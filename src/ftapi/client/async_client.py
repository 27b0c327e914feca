"""Non-blocking 42 API client.

:class:`AsyncFtClient` mirrors :class:`~ftapi.client.sync_client.FtClient`
on top of :class:`httpx.AsyncClient`. Every network operation is a
coroutine; :meth:`get_authorization_url` stays synchronous since it never
touches the network. The application token slot is guarded by an
:class:`asyncio.Lock`.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx

from ftapi.client.base import ME_PATH, TOKEN_PATH, BaseFtClient
from ftapi.clock import Clock
from ftapi.credentials import AppCredentials, CredentialMode
from ftapi.exceptions import TransportBuildError, TransportError
from ftapi.models import ClientConfig, Token, User
from ftapi.output import get_output


class AsyncFtClient(BaseFtClient):
    """Asynchronous client for the 42 API.

    Accepts the same arguments as :class:`~ftapi.client.FtClient`, except
    that *transport* must be an :class:`httpx.AsyncBaseTransport`.

    A client is tied to the event loop it is first used on, as is its
    :class:`httpx.AsyncClient` and the :class:`asyncio.Lock` guarding the
    token slot. Build a new client for each :func:`asyncio.run`.

    Example::

        async with AsyncFtClient.from_app(uid, secret) as client:
            token = await client.ensure_app_token()
    """

    def __init__(
        self,
        mode: CredentialMode,
        config: Optional[ClientConfig] = None,
        clock: Optional[Clock] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(mode, config, clock)
        self._token_lock = asyncio.Lock()
        try:
            self._client = httpx.AsyncClient(**self._client_options(transport))
        except (TypeError, ValueError, httpx.InvalidURL) as exc:
            raise TransportBuildError(f"Couldn't build the HTTP client: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncFtClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Application tokens
    # ------------------------------------------------------------------ #

    async def fetch_app_token(self, extra_data: bool = False) -> Token:
        """Fetch a new application token and store it in the cache.

        See :meth:`ftapi.client.FtClient.fetch_app_token`.
        """
        app = self._require_app("fetch_app_token")
        self._check_extra_data(extra_data)
        token = await self._request_app_token(app)
        async with self._token_lock:
            app.cached_token = token
        return token

    async def ensure_app_token(self) -> Token:
        """Return a valid cached application token, fetching one if needed.

        See :meth:`ftapi.client.FtClient.ensure_app_token`.
        """
        app = self._require_app("ensure_app_token")
        async with self._token_lock:
            if self._token_is_fresh(app.cached_token):
                assert app.cached_token is not None
                return app.cached_token
            get_output().debug("Application token missing or expired, fetching a new one")
            app.cached_token = await self._request_app_token(app)
            return app.cached_token

    # ------------------------------------------------------------------ #
    # User tokens and resources
    # ------------------------------------------------------------------ #

    async def fetch_access_token(self, code: str, callback_url: str) -> Token:
        """Exchange an authorization code for a user token."""
        app = self._require_app("fetch_access_token")
        response = await self._send(
            "POST", TOKEN_PATH, data=self._authorization_code_form(app, code, callback_url)
        )
        return self._handle(response, Token)

    async def fetch_user_data(self, token: Optional[Token] = None) -> User:
        """Fetch the profile of the user owning *token* (or the client's own token)."""
        token = self._resolve_user_token(token)
        response = await self._send("GET", ME_PATH, headers=token.bearer_header())
        return self._handle(response, User)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _request_app_token(self, app: AppCredentials) -> Token:
        response = await self._send("POST", TOKEN_PATH, data=self._client_credentials_form(app))
        return self._handle(response, Token)

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        get_output().debug(f"{method} {self.base_url}{path}")
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"Error while sending {method} {path}: {exc}") from exc
