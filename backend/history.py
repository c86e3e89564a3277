from __future__ import annotations

import json
import logging
from typing import List

from pydantic import TypeAdapter, ValidationError

from errors import StoreCorrupt
from models import HISTORY_LIMIT, History, SaveResult, Snapshot

logger = logging.getLogger(f"trafficwatch.{__name__}")

_snapshots_adapter = TypeAdapter(List[Snapshot])


def dumps(history: History) -> str:
    return json.dumps([s.model_dump(by_alias=True) for s in history.entries])


def loads(blob: str, limit: int = HISTORY_LIMIT) -> History:
    """Decode a persisted buffer, keeping only the newest ``limit`` entries."""
    try:
        snapshots = _snapshots_adapter.validate_json(blob)
    except ValidationError as e:
        raise StoreCorrupt(f"Unreadable history: {e.error_count()} error(s)") from e
    return History(entries=tuple(snapshots[-limit:]) if limit > 0 else (), limit=limit)


def load(store, key: str, limit: int = HISTORY_LIMIT) -> History:
    """Rehydrate history from the store. Never raises: absent or corrupt data is an empty history."""
    try:
        blob = store.get(key)
        if blob is None:
            return History(limit=limit)
        history = loads(blob, limit)
    except Exception as e:
        logger.warning(f"Failed to load history (first run or corrupted): {e}")
        return History(limit=limit)
    logger.info(f"Loaded {history.size} history entries from {key!r}")
    return history


def append(history: History, snapshot: Snapshot) -> History:
    """Return a new history with ``snapshot`` at the end, evicting the oldest entries past the limit."""
    latest = history.latest
    if latest is not None and snapshot.timestamp < latest.timestamp:
        logger.warning(
            f"Snapshot at {snapshot.timestamp} is older than the latest entry ({latest.timestamp})"
        )
    entries = history.entries + (snapshot,)
    overflow = len(entries) - history.limit
    if overflow > 0:
        entries = entries[overflow:]
    return History(entries=entries, limit=history.limit)


def save(store, key: str, history: History) -> SaveResult:
    try:
        store.set(key, dumps(history))
    except Exception as e:
        return SaveResult(ok=False, error=str(e))
    return SaveResult(ok=True)
