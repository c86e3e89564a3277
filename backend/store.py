"""Key-value blob storage for the history buffer."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional

from errors import StoreCorrupt, StoreWriteError

logger = logging.getLogger(f"trafficwatch.{__name__}")


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """Stores every key in one JSON object on disk.

    Writes go through a temporary file and ``os.replace`` so a reader never
    sees a half-written file.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreCorrupt(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreCorrupt(f"{self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read_all().get(key)
        if value is not None and not isinstance(value, str):
            raise StoreCorrupt(f"Value for {key!r} is not a string")
        return value

    def set(self, key: str, value: str) -> None:
        with self._lock:
            try:
                data = self._read_all()
            except StoreCorrupt as e:
                logger.warning(f"Overwriting unreadable store: {e}")
                data = {}
            data[key] = value
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(json.dumps(data), encoding="utf-8")
                os.replace(tmp, self.path)
            except OSError as e:
                if tmp.exists():
                    tmp.unlink()
                raise StoreWriteError(f"Cannot write {self.path}: {e}") from e
