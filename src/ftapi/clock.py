"""Wall-clock time source used for token expiry checks.

The client never reads the clock directly; it calls the :data:`Clock`
it was constructed with, which defaults to :func:`system_clock`. Tests
pass a fixed callable instead.
"""

from __future__ import annotations

import time
from typing import Callable

from ftapi.exceptions import InvalidTimestampError

Clock = Callable[[], int]
"""A zero-argument callable returning the current Unix timestamp in seconds."""


def system_clock() -> int:
    """Return the current Unix timestamp in whole seconds."""
    return int(time.time())


def validate_timestamp(now: int) -> int:
    """Check that *now* is a usable Unix timestamp and return it.

    Raises:
        InvalidTimestampError: If *now* is negative (a pre-epoch clock) or
            not an integer.
    """
    if isinstance(now, bool) or not isinstance(now, int):
        raise InvalidTimestampError(f"Timestamp must be an integer, got {now!r}")
    if now < 0:
        raise InvalidTimestampError(f"Timestamp {now} is before the Unix epoch")
    return now
