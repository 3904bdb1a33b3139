"""
UTC datetime and epoch-millisecond helpers for consistent time handling.

Cache envelopes store integer epoch milliseconds; API payloads use
timezone-aware UTC datetimes. Use these helpers instead of
datetime.now() or time.time() directly so clocks stay injectable.
"""

import time
from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Use this instead of:
        - datetime.now() - naive, uses local timezone
        - datetime.utcnow() - naive, deprecated in Python 3.12

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def now_millis() -> int:
    """Return the current Unix time in whole milliseconds."""
    return time.time_ns() // 1_000_000

