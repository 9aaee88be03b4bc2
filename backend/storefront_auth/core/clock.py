"""Millisecond wall clock used for token issuance and expiry checks."""

import time
from collections.abc import Callable

# Returns milliseconds since the Unix epoch
Clock = Callable[[], int]


def system_clock() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000
