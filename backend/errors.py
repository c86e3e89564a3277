from __future__ import annotations


class MonitorError(Exception):
    """Base class for every error raised by the monitor core."""


class SourceError(MonitorError):
    pass


class SourceUnavailable(SourceError):
    """The controller could not be reached (connect, read or DNS failure)."""


class SourceProtocolError(SourceError):
    """The controller answered with a non-success status or an unparsable body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StoreError(MonitorError):
    pass


class StoreCorrupt(StoreError):
    """Persisted history could not be decoded."""


class StoreWriteError(StoreError):
    pass
