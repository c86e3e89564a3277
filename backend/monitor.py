from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional

import history as history_store
from aggregator import breakdown_projection, protocol_cards, series_projection
from errors import SourceError
from fetcher import StatsSource
from models import (
    BreakdownEntry,
    History,
    MonitorStatus,
    PacketPage,
    ProtocolCard,
    ProtocolCounters,
    RefreshResult,
    SeriesView,
    Snapshot,
    TimeRange,
)
from pages import PacketPageCache
from store import JsonFileStore
from window import select

logger = logging.getLogger(f"trafficwatch.{__name__}")

FETCH_ERROR = "Failed to fetch data"
PACKETS_ERROR = "Failed to fetch packet summaries"


class MonitorSession:
    """Owns the counter history for one monitoring session.

    History is loaded once by ``start`` and afterwards changes only through
    ``refresh``. Refreshes never overlap: a trigger that arrives while one is
    in flight is skipped.
    """

    def __init__(
        self,
        source: StatsSource,
        store,
        history_key: str = "traffic_history",
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.store = store
        self.history_key = history_key
        self._clock = clock
        self._history = History()
        self._current: ProtocolCounters = {}
        self._packets = PacketPageCache()
        self._refresh_lock = asyncio.Lock()
        self._loading = True
        self._fetch_error: Optional[str] = None
        self._packets_error: Optional[str] = None
        self._startup_tasks: List[asyncio.Task] = []

    @classmethod
    def from_settings(cls, settings) -> "MonitorSession":
        return cls(
            source=StatsSource(settings.controller_url, timeout=settings.request_timeout),
            store=JsonFileStore(settings.history_file),
            history_key=settings.history_key,
        )

    @property
    def history(self) -> History:
        return self._history

    @property
    def current(self) -> ProtocolCounters:
        return dict(self._current)

    def load_history(self) -> History:
        self._history = history_store.load(self.store, self.history_key)
        return self._history

    async def start(self):
        """Load history, then fetch counters and packets in the background.

        Returns without waiting on the controller, so a hung request only
        holds up refreshes.
        """
        self.load_history()
        self._startup_tasks = [
            asyncio.create_task(self.refresh()),
            asyncio.create_task(self.load_packets()),
        ]

    async def wait_ready(self):
        await asyncio.gather(*self._startup_tasks)

    async def close(self):
        for task in self._startup_tasks:
            task.cancel()
        await asyncio.gather(*self._startup_tasks, return_exceptions=True)
        self._startup_tasks = []
        await self.source.close()

    async def refresh(self) -> RefreshResult:
        if self._refresh_lock.locked():
            logger.info("Refresh already in progress, skipping")
            return RefreshResult(status="skipped", history_size=self._history.size)

        async with self._refresh_lock:
            try:
                counters = await self.source.fetch_protocols()
            except SourceError as e:
                logger.error(f"Protocol stats fetch failed: {e}")
                self._fetch_error = FETCH_ERROR
                self._loading = False
                return RefreshResult(status="error", history_size=self._history.size, error=FETCH_ERROR)

            snapshot = Snapshot(timestamp=int(self._clock()), counters=counters)
            self._current = counters
            self._loading = False
            self._history = history_store.append(self._history, snapshot)
            result = history_store.save(self.store, self.history_key, self._history)
            if not result.ok:
                logger.error(f"Failed to save history: {result.error}")
            self._fetch_error = None
            return RefreshResult(
                status="ok",
                timestamp=snapshot.timestamp,
                history_size=self._history.size,
            )

    async def load_packets(self) -> bool:
        try:
            summaries = await self.source.fetch_packet_summaries()
        except SourceError as e:
            logger.error(f"Packet summaries fetch failed: {e}")
            self._packets_error = PACKETS_ERROR
            return False
        self._packets.replace(summaries)
        self._packets_error = None
        return True

    def series(self, time_range: TimeRange | str = TimeRange.FIFTEEN_MINUTES, now: Optional[int] = None) -> SeriesView:
        if now is None:
            now = int(self._clock())
        return series_projection(select(self._history, time_range, now), self._current)

    def breakdown(self) -> Dict[str, BreakdownEntry]:
        return breakdown_projection(self._current)

    def cards(self) -> List[ProtocolCard]:
        return protocol_cards(self._current)

    def page(self) -> PacketPage:
        return self._packets.view()

    def set_page(self, page: int) -> bool:
        return self._packets.set_page(page)

    def status(self) -> MonitorStatus:
        latest = self._history.latest
        return MonitorStatus(
            loading=self._loading,
            refreshing=self._refresh_lock.locked(),
            error=self._fetch_error or self._packets_error,
            history_size=self._history.size,
            last_updated=latest.timestamp if latest else None,
            packet_count=len(self._packets),
        )
