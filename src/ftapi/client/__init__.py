"""API client module for ftapi.

Provides blocking and asynchronous clients that wrap :mod:`httpx` with
credential-mode handling, application token caching, and OAuth error
decoding.

Classes:
    :class:`FtClient` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncFtClient` -- non-blocking client backed by :class:`httpx.AsyncClient`.

Both are built with ``from_app(uid, secret)`` or ``from_user(token)`` and
expose the same operations.

Example::

    from ftapi.client import FtClient

    with FtClient.from_app(uid, secret) as client:
        token = client.ensure_app_token()
"""

from ftapi.client.async_client import AsyncFtClient
from ftapi.client.sync_client import FtClient

__all__ = ["FtClient", "AsyncFtClient"]
