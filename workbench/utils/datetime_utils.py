"""
Timestamp helpers for workbench.

Entities carry integer epoch milliseconds, which is also what the export
document stores.
"""

import time
from datetime import datetime
from typing import Optional

DISPLAY_FORMAT = "%Y-%m-%d %H:%M"  # Human-readable: "2024-01-15 10:30"
FILENAME_FORMAT = "%Y-%m-%d_%H%M%S"  # Backup filenames: "2024-01-15_103000"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def bump_timestamp(previous: Optional[int]) -> int:
    """Return a fresh ``updated_at`` strictly greater than ``previous``."""
    current = now_ms()
    if previous is not None and previous >= current:
        return previous + 1
    return current


def format_ts(value: Optional[int], fmt: str = DISPLAY_FORMAT) -> str:
    """Format an epoch-millisecond timestamp in local time."""
    if not value:
        return ""
    return datetime.fromtimestamp(value / 1000).strftime(fmt)
