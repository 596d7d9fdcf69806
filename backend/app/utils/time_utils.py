"""Time helpers. All persisted timestamps are Unix epoch milliseconds."""

import time

DAY_MS = 24 * 60 * 60 * 1000


def get_timestamp_ms() -> int:
    """Current Unix timestamp in milliseconds."""
    return int(time.time() * 1000)


def ms_ago(days: float = 0, now_ms: int | None = None) -> int:
    """Timestamp (ms) for a point `days` before `now_ms` (default: now)."""
    if now_ms is None:
        now_ms = get_timestamp_ms()
    return now_ms - int(days * DAY_MS)
