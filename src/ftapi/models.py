"""Canonical Pydantic models shared across all ftapi modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Wire models** -- decoded from (and for tokens, encoded back to) API JSON:
    :class:`ErrorKind`, :class:`ErrorEnvelope`, :class:`Token`,
    :class:`UserImageVersions`, :class:`UserImage`, and :class:`User`.

**Configuration models** -- control the client and the CLI:
    :class:`RequestConfig`, :class:`ClientConfig`, and :class:`GlobalConfig`.

Wire models ignore unknown keys so that new fields added by the API do not
break decoding.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ftapi.clock import system_clock, validate_timestamp

DEFAULT_BASE_URL = "https://api.intra.42.fr"
DEFAULT_CALLBACK_URL = "http://localhost:1337/oauth/callback"
NO_DESCRIPTION = "No description provided."

EXPIRY_MARGIN = 5
"""Seconds subtracted from every validity check so a token reported valid
stays valid for at least this long."""

U64_MAX = 2**64 - 1
"""Largest value the API sends for token lifetimes and timestamps."""


# --- Errors ---


class ErrorKind(str, enum.Enum):
    """OAuth error codes returned in the ``error`` field of an error body.

    Any code the API sends that is not listed here decodes to
    :attr:`UNKNOWN` so that new server-side codes never break clients.
    """

    INVALID_CLIENT = "invalid_client"
    INVALID_GRANT = "invalid_grant"
    INVALID_REQUEST = "invalid_request"
    INVALID_SCOPE = "invalid_scope"
    UNAUTHORIZED_CLIENT = "unauthorized_client"
    UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code: Any) -> ErrorKind:
        """Map a raw ``error`` value to a kind by exact literal match.

        Args:
            code: The decoded ``error`` value. Non-string values are
                accepted and map to :attr:`UNKNOWN`.

        Returns:
            The matching :class:`ErrorKind`, or :attr:`UNKNOWN`.
        """
        if not isinstance(code, str):
            return cls.UNKNOWN
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


class ErrorEnvelope(BaseModel):
    """Decoded API error body.

    Build instances with :meth:`from_payload`, which applies the defaults
    for missing fields; the constructor performs no defaulting of
    ``status``.
    """

    error: ErrorKind = ErrorKind.UNKNOWN
    error_description: str = NO_DESCRIPTION
    status: int

    @classmethod
    def from_payload(cls, payload: Any, http_status: int) -> ErrorEnvelope:
        """Build an envelope from a decoded JSON body.

        Args:
            payload: The decoded body. Anything other than a ``dict``
                (a list, a string, ``None`` for an unparseable body) yields
                an envelope made entirely of defaults.
            http_status: The response status, used when the body carries
                no integer ``status`` of its own.
        """
        if not isinstance(payload, dict):
            return cls(status=http_status)

        description = payload.get("error_description")
        if not isinstance(description, str):
            description = NO_DESCRIPTION

        status = payload.get("status")
        if isinstance(status, bool) or not isinstance(status, int):
            status = http_status

        return cls(
            error=ErrorKind.from_code(payload.get("error", ErrorKind.UNKNOWN.value)),
            error_description=description,
            status=status,
        )


# --- Tokens ---


class Token(BaseModel):
    """A bearer credential issued by the ``/oauth/token`` endpoint.

    Application tokens (client-credentials grant) carry only the required
    fields. User tokens (authorization-code grant) may also carry a
    ``refresh_token`` and ``secret_valid_until``.

    Tokens are frozen: a refresh produces a new instance. ``access_token``
    is excluded from ``repr`` so tokens can be printed in debug output
    without leaking the secret.

    Example::

        token = Token.model_validate_json(response.content)
        if token.is_expired():
            ...
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = Field(repr=False)
    token_type: str
    expires_in: int = Field(ge=0, le=U64_MAX, description="Lifetime in seconds")
    scope: str
    created_at: int = Field(ge=0, le=U64_MAX, description="Issue time as a Unix timestamp")
    refresh_token: Optional[str] = Field(default=None, repr=False)
    secret_valid_until: Optional[int] = Field(
        default=None, ge=0, le=U64_MAX, description="Unix timestamp bounding the refresh secret"
    )

    @property
    def expires_at(self) -> int:
        """Absolute expiry instant (Unix timestamp)."""
        return self.created_at + self.expires_in

    def is_expired(self, now: Optional[int] = None) -> bool:
        """Return ``True`` if the token expires within the safety margin.

        A token is considered expired when ``created_at + expires_in <=
        now + 5``, so a token reported valid remains valid for at least
        five more seconds.

        Args:
            now: Current Unix timestamp. Read from the system clock when
                omitted.

        Raises:
            InvalidTimestampError: If *now* is negative.
        """
        now = validate_timestamp(system_clock() if now is None else now)
        return self.expires_at <= now + EXPIRY_MARGIN

    def can_renew(self, now: Optional[int] = None) -> bool:
        """Return ``True`` if the token can be renewed with its refresh token.

        A token without a refresh token is never renewable. A token with a
        refresh token and no ``secret_valid_until`` is always renewable.
        Otherwise renewal is allowed once ``secret_valid_until <= now + 5``.

        Args:
            now: Current Unix timestamp. Read from the system clock when
                omitted.
        """
        if self.refresh_token is None:
            return False
        if self.secret_valid_until is None:
            return True
        now = validate_timestamp(system_clock() if now is None else now)
        return self.secret_valid_until <= now + EXPIRY_MARGIN

    def bearer_header(self) -> dict[str, str]:
        """Return the ``Authorization`` header presenting this token."""
        return {"Authorization": f"Bearer {self.access_token}"}


# --- Users ---


class UserImageVersions(BaseModel):
    """Resized variants of a user's profile picture."""

    model_config = ConfigDict(extra="ignore")

    large: Optional[str] = None
    medium: Optional[str] = None
    small: Optional[str] = None
    micro: Optional[str] = None


class UserImage(BaseModel):
    """A user's profile picture."""

    model_config = ConfigDict(extra="ignore")

    link: Optional[str] = None
    versions: Optional[UserImageVersions] = None


class User(BaseModel):
    """The authenticated user's profile, as returned by ``GET /v2/me``.

    The API names the staff flag ``staff?``; it is exposed here as
    :attr:`staff` and accepted under either name.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    email: str
    login: str
    first_name: str
    last_name: str
    usual_full_name: Optional[str] = None
    usual_first_name: Optional[str] = None
    url: str
    phone: str
    displayname: str
    kind: str
    image: UserImage = Field(default_factory=UserImage)
    staff: bool = Field(default=False, alias="staff?")
    correction_point: int = 0
    wallet: int = 0


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every request a client sends."""

    timeout: float = Field(default=30.0, description="Read/write/pool timeout in seconds")
    connect_timeout: float = Field(default=30.0, description="Connect timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class ClientConfig(BaseModel):
    """Settings needed to build an :class:`~ftapi.client.FtClient`."""

    base_url: str = Field(default=DEFAULT_BASE_URL, description="API root, without trailing slash")
    request: RequestConfig = Field(default_factory=RequestConfig)


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/ftapi/config.json``.

    Loaded and saved by :func:`~ftapi.config.load_global_config` and
    :func:`~ftapi.config.save_global_config`. See
    :func:`~ftapi.config.resolve_config` for the precedence chain.
    """

    base_url: str = DEFAULT_BASE_URL
    app_id_source: str = Field(
        default="env:FTAPI_UID",
        description="Credential source for the application UID: env:VAR, file:/path, prompt, literal:VALUE",
    )
    app_secret_source: str = Field(
        default="env:FTAPI_SECRET",
        description="Credential source for the application secret",
    )
    callback_url: str = DEFAULT_CALLBACK_URL
    scopes: list[str] = Field(default_factory=lambda: ["public"])
    request: RequestConfig = Field(default_factory=RequestConfig)

    def client_config(self) -> ClientConfig:
        """Project the settings a client needs."""
        return ClientConfig(base_url=self.base_url, request=self.request)
