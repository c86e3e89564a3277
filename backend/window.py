from __future__ import annotations

import time
from typing import Optional, Tuple

from models import History, Snapshot, TimeRange

LOOKBACK_SECONDS = {
    TimeRange.FIVE_MINUTES: 300,
    TimeRange.FIFTEEN_MINUTES: 900,
    TimeRange.THIRTY_MINUTES: 1800,
    TimeRange.ONE_HOUR: 3600,
}

DEFAULT_RANGE = TimeRange.FIFTEEN_MINUTES


def lookback(time_range: TimeRange | str) -> int:
    return LOOKBACK_SECONDS[TimeRange(time_range)]


def select(
    history: History,
    time_range: TimeRange | str,
    now: Optional[int] = None,
) -> Tuple[Snapshot, ...]:
    """Return the longest suffix of ``history`` whose timestamps are within the lookback of ``now``."""
    if now is None:
        now = int(time.time())
    cutoff = now - lookback(time_range)
    entries = history.entries
    start = len(entries)
    while start > 0 and entries[start - 1].timestamp >= cutoff:
        start -= 1
    return entries[start:]
