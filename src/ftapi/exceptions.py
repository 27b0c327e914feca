"""Exception hierarchy for ftapi.

All exceptions inherit from :class:`FtError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`ftapi.exit_codes`.
Library callers catch the specific subclasses; the CLI entry point in
:func:`ftapi.app.main` catches ``FtError`` and exits with the matching
code.

Subclass hierarchy::

    FtError (exit 1)
    +-- TransportBuildError       (exit 1)
    +-- TransportError            (exit 6)
    +-- DecodeError               (exit 5)
    +-- WrongCredentialModeError  (exit 2)
    +-- UnsupportedFeatureError   (exit 2)
    +-- InvalidTimestampError     (exit 2)
    +-- ConfigError               (exit 1)
    +-- ApiError                  (exit 3)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ftapi.exit_codes import (
    EXIT_API_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)

if TYPE_CHECKING:
    from ftapi.models import ErrorKind


class FtError(Exception):
    """Base exception for all ftapi errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`ftapi.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class TransportBuildError(FtError):
    """Raised when the underlying HTTP client cannot be constructed (e.g. invalid default headers)."""

    exit_code = EXIT_GENERIC_FAILURE


class TransportError(FtError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Nothing is retried by the client; whether to try again is the caller's call.
    """

    exit_code = EXIT_CONNECTION_ERROR


class DecodeError(FtError):
    """Raised when a response body does not match the expected shape."""

    exit_code = EXIT_DECODE_ERROR


class WrongCredentialModeError(FtError):
    """Raised when an operation is invoked on a client holding the other credential mode.

    For example, building an authorization URL on a client constructed from
    a user token. The check happens before any network traffic.
    """

    exit_code = EXIT_INVALID_USAGE


class UnsupportedFeatureError(FtError):
    """Raised when a reserved, not yet implemented option is requested."""

    exit_code = EXIT_INVALID_USAGE


class InvalidTimestampError(FtError):
    """Raised when a clock reading is not a valid Unix timestamp (e.g. pre-epoch)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(FtError):
    """Raised for configuration problems (invalid config file, unresolvable credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class ApiError(FtError):
    """Raised when the API explicitly rejects a request.

    Carries the decoded OAuth error envelope so callers can branch on the
    error kind without parsing the message.

    Args:
        kind: The OAuth error code, or ``ErrorKind.UNKNOWN``.
        status: HTTP status reported by the body, else the response status.
        description: The ``error_description`` text from the body.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, kind: ErrorKind, status: int, description: str):
        super().__init__(f"API error {status}: {kind.value}: {description}")
        self.kind = kind
        self.status = status
        self.description = description
