"""Transport-independent core shared by the blocking and async clients.

:class:`BaseFtClient` owns everything that does not depend on whether a
request is awaited:

- the :data:`~ftapi.credentials.CredentialMode` and mode checks,
- construction options for the underlying :mod:`httpx` client
  (``User-Agent``, base URL, timeouts),
- the form bodies of the two grants,
- the authorization URL,
- decoding of success bodies into models and of error bodies into
  :class:`~ftapi.exceptions.ApiError`.

Subclasses add the request methods themselves and a lock around the
application token slot.
"""

from __future__ import annotations

from typing import Any, NoReturn, Optional, TypeVar
from urllib.parse import quote, urlencode

import httpx
from pydantic import BaseModel, ValidationError

from ftapi import __version__
from ftapi.clock import Clock, system_clock, validate_timestamp
from ftapi.config import resolve_credential
from ftapi.credentials import AppCredentials, CredentialMode, UserCredentials
from ftapi.exceptions import (
    ApiError,
    DecodeError,
    UnsupportedFeatureError,
    WrongCredentialModeError,
)
from ftapi.models import ClientConfig, ErrorEnvelope, GlobalConfig, Token
from ftapi.output import get_output

TOKEN_PATH = "/oauth/token"
AUTHORIZE_PATH = "/oauth/authorize"
ME_PATH = "/v2/me"

USER_AGENT = f"ftapi/{__version__}"

_M = TypeVar("_M", bound=BaseModel)
_C = TypeVar("_C", bound="BaseFtClient")


class BaseFtClient:
    """Credential mode, request construction and response decoding.

    Not used directly; see :class:`~ftapi.client.FtClient` and
    :class:`~ftapi.client.AsyncFtClient`.

    Args:
        mode: The credential mode held for the client's lifetime.
        config: Base URL and request settings. Defaults to the public API.
        clock: Time source for expiry checks. Defaults to the system clock.
    """

    def __init__(
        self,
        mode: CredentialMode,
        config: Optional[ClientConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._mode = mode
        self._config = config or ClientConfig()
        self._clock = clock or system_clock

    # ------------------------------------------------------------------ #
    # Construction helpers
    # ------------------------------------------------------------------ #

    @classmethod
    def from_app(
        cls: type[_C],
        app_id: str,
        app_secret: str,
        *,
        config: Optional[ClientConfig] = None,
        clock: Optional[Clock] = None,
        transport: Any = None,
    ) -> _C:
        """Create a client in application mode with an empty token cache.

        Raises:
            TransportBuildError: If the HTTP client cannot be constructed.
        """
        mode = AppCredentials(app_id=app_id, app_secret=app_secret)
        return cls(mode, config=config, clock=clock, transport=transport)  # type: ignore[call-arg]

    @classmethod
    def from_user(
        cls: type[_C],
        token: Token,
        *,
        config: Optional[ClientConfig] = None,
        clock: Optional[Clock] = None,
        transport: Any = None,
    ) -> _C:
        """Create a client in user mode around *token*.

        The token's expiry is not checked here; an expired token surfaces
        as an :class:`~ftapi.exceptions.ApiError` on first use.

        Raises:
            TransportBuildError: If the HTTP client cannot be constructed.
        """
        mode = UserCredentials(token=token)
        return cls(mode, config=config, clock=clock, transport=transport)  # type: ignore[call-arg]

    @classmethod
    def from_config(
        cls: type[_C],
        global_config: GlobalConfig,
        *,
        clock: Optional[Clock] = None,
        transport: Any = None,
    ) -> _C:
        """Create an application-mode client from the configured credential sources.

        Raises:
            ConfigError: If the UID or secret source cannot be resolved.
            TransportBuildError: If the HTTP client cannot be constructed.
        """
        return cls.from_app(
            resolve_credential(global_config.app_id_source),
            resolve_credential(global_config.app_secret_source),
            config=global_config.client_config(),
            clock=clock,
            transport=transport,
        )

    def _client_options(self, transport: Any) -> dict[str, Any]:
        """Keyword arguments for the underlying ``httpx`` client."""
        request = self._config.request
        options: dict[str, Any] = {
            "base_url": self.base_url,
            "headers": {"User-Agent": USER_AGENT, "Accept": "application/json"},
            "timeout": httpx.Timeout(request.timeout, connect=request.connect_timeout),
            "verify": request.verify_ssl,
        }
        if transport is not None:
            options["transport"] = transport
        return options

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def mode(self) -> CredentialMode:
        """The credential mode this client was built with."""
        return self._mode

    @property
    def base_url(self) -> str:
        return self._config.base_url.rstrip("/")

    @property
    def app_token(self) -> Optional[Token]:
        """The cached application token, or ``None`` before the first fetch.

        Raises:
            WrongCredentialModeError: On a user-mode client.
        """
        return self._require_app("app_token").cached_token

    # ------------------------------------------------------------------ #
    # Operations that need no network
    # ------------------------------------------------------------------ #

    def get_authorization_url(self, callback_url: str, scopes: list[str]) -> str:
        """Build the URL the end user's browser is sent to for authorization.

        The callback URL is percent-encoded and the scopes are joined with
        a single space (sent as ``%20``).

        Example::

            >>> client.get_authorization_url(
            ...     "http://localhost:1337/oauth/callback", ["public", "profile"]
            ... )
            'https://api.intra.42.fr/oauth/authorize?client_id=...&redirect_uri=http%3A%2F%2Flocalhost%3A1337%2Foauth%2Fcallback&scope=public%20profile&response_type=code'

        Raises:
            WrongCredentialModeError: On a user-mode client.
        """
        app = self._require_app("get_authorization_url")
        params = {
            "client_id": app.app_id,
            "redirect_uri": callback_url,
            "scope": " ".join(scopes),
            "response_type": "code",
        }
        return f"{self.base_url}{AUTHORIZE_PATH}?{urlencode(params, safe='', quote_via=quote)}"

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _require_app(self, operation: str) -> AppCredentials:
        if not isinstance(self._mode, AppCredentials):
            raise WrongCredentialModeError(
                f"{operation} requires application credentials, "
                "but this client was built from a user token"
            )
        return self._mode

    def _resolve_user_token(self, token: Optional[Token]) -> Token:
        """Pick the token for a user-scoped request."""
        if token is not None:
            return token
        if isinstance(self._mode, UserCredentials):
            return self._mode.token
        raise WrongCredentialModeError(
            "fetch_user_data needs a user token: pass one explicitly "
            "or build the client with from_user()"
        )

    def _now(self) -> int:
        return validate_timestamp(self._clock())

    def _token_is_fresh(self, token: Optional[Token]) -> bool:
        return token is not None and not token.is_expired(self._now())

    @staticmethod
    def _check_extra_data(extra_data: bool) -> None:
        if extra_data:
            raise UnsupportedFeatureError(
                "Token introspection (extra_data=True) is not implemented"
            )

    @staticmethod
    def _client_credentials_form(app: AppCredentials) -> dict[str, str]:
        return {
            "grant_type": "client_credentials",
            "client_id": app.app_id,
            "client_secret": app.app_secret,
        }

    @staticmethod
    def _authorization_code_form(
        app: AppCredentials, code: str, callback_url: str
    ) -> dict[str, str]:
        return {
            "grant_type": "authorization_code",
            "client_id": app.app_id,
            "client_secret": app.app_secret,
            "code": code,
            "redirect_uri": callback_url,
        }

    def _handle(self, response: httpx.Response, model: type[_M]) -> _M:
        """Decode a success body into *model*, or raise the API's error."""
        request = response.request
        get_output().debug(f"HTTP {response.status_code} from {request.method} {request.url.path}")
        if not response.is_success:
            self._raise_api_error(response)
        try:
            return model.model_validate_json(response.content)
        except ValidationError as exc:
            raise DecodeError(
                f"Unexpected {model.__name__} response from {request.url.path}: "
                f"{exc.error_count()} validation error(s)"
            ) from exc

    @staticmethod
    def _raise_api_error(response: httpx.Response) -> NoReturn:
        """Decode an error body and raise it as :class:`ApiError`.

        Bodies that are not JSON objects yield an envelope of defaults, so
        this always raises an ``ApiError`` and never a decode failure.
        """
        try:
            payload: Any = response.json()
        except ValueError:
            payload = None
            get_output().debug(
                f"Error body from {response.request.url.path} is not JSON "
                f"({len(response.content)} bytes)"
            )

        envelope = ErrorEnvelope.from_payload(payload, response.status_code)
        raise ApiError(envelope.error, envelope.status, envelope.error_description)
