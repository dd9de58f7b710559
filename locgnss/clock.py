"""Wall-clock helpers that report time in micro- and milliseconds."""

from __future__ import annotations

import time


def system_time_us() -> int:
    """Current wall-clock time in whole microseconds since the epoch."""
    return time.time_ns() // 1000


def elapsed_millis_since_boot() -> int:
    """Current wall-clock time in whole milliseconds since the epoch.

    The value comes from the wall clock, not from a boot-relative clock.
    """
    return system_time_us() // 1000