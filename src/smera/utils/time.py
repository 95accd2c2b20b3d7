"""Time utilities for Smera.

Queued records and timeline entries carry epoch-millisecond timestamps,
so both a timezone-aware ``datetime`` and a millisecond helper live here.
"""

import time
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000
