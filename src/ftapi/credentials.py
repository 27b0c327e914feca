"""Credential modes held by a client.

A client holds exactly one :data:`CredentialMode`:

- :class:`AppCredentials` -- the application's UID and secret plus the
  cached application token. Needed for every ``/oauth`` operation.
- :class:`UserCredentials` -- a single user token obtained elsewhere
  (typically from a previous authorization-code exchange).

The mode is chosen at construction and never converted. Code that needs a
specific mode dispatches on the variant type; see
:meth:`ftapi.client.base.BaseFtClient._require_app`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from ftapi.models import Token


@dataclass
class AppCredentials:
    """Application credentials with a replaceable token slot.

    ``cached_token`` starts empty and is replaced wholesale each time the
    client fetches a new application token. Clients guard the slot with a
    lock; mutate it only through the client.
    """

    app_id: str
    app_secret: str = field(repr=False)
    cached_token: Optional[Token] = None


@dataclass(frozen=True)
class UserCredentials:
    """A fixed user token. There is no refresh path for this mode."""

    token: Token


CredentialMode = Union[AppCredentials, UserCredentials]
