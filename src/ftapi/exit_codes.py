"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~ftapi.exceptions.FtError` subclass.
Shell scripts wrapping the ``ftapi`` CLI can inspect the exit code to
determine the failure class without parsing stderr.

Example::

    $ ftapi auth exchange 4f2c...
    $ echo $?
    3   # EXIT_API_ERROR -- the API rejected the code
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command or library call was used incorrectly (wrong credential mode, bad arguments)."""

EXIT_API_ERROR = 3
"""The remote API explicitly rejected the request (OAuth error envelope)."""

EXIT_DECODE_ERROR = 5
"""The API answered with a body that does not match the expected shape."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
