from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

HISTORY_LIMIT = 120
PAGE_SIZE = 10


class TimeRange(str, Enum):
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    THIRTY_MINUTES = "30m"
    ONE_HOUR = "1h"


class ProtocolStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    packets: int = Field(default=0, ge=0)
    bytes: int = Field(default=0, ge=0)


ProtocolCounters = Dict[str, ProtocolStats]


class Snapshot(BaseModel):
    """One timestamped capture of all protocol counters.

    Persisted as ``{"timestamp": ..., "data": {...}}``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: int
    counters: Dict[str, ProtocolStats] = Field(default_factory=dict, alias="data")


class History(BaseModel):
    model_config = ConfigDict(frozen=True)

    entries: Tuple[Snapshot, ...] = ()
    limit: int = HISTORY_LIMIT

    @property
    def size(self) -> int:
        return len(self.entries)

    @property
    def latest(self) -> Optional[Snapshot]:
        return self.entries[-1] if self.entries else None


class PacketSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: float
    dpid: int
    in_port: int
    eth_src: str
    eth_dst: str
    eth_type: Optional[str] = None
    ip_src: Optional[str] = None
    ip_dst: Optional[str] = None
    ip_proto: Optional[int] = None
    src_port: Optional[int] = None
    dst_port: Optional[int] = None
    packet_len: int
    protocol_identified: str


class PacketPage(BaseModel):
    items: List[PacketSummary] = []
    current_page: int = 1
    total_pages: int = 1
    page_size: int = PAGE_SIZE
    total_items: int = 0


class ProtocolSeries(BaseModel):
    protocol: str
    values: List[int] = []
    border_color: str
    background_color: str


class SeriesView(BaseModel):
    labels: List[str] = []
    timestamps: List[int] = []
    series: List[ProtocolSeries] = []

    def values_for(self, protocol: str) -> Optional[List[int]]:
        for item in self.series:
            if item.protocol == protocol:
                return item.values
        return None


class BreakdownEntry(BaseModel):
    bytes: int
    percent: float
    color: str


class ProtocolCard(BaseModel):
    protocol: str
    packets: int
    bytes: int
    bytes_display: str


class SaveResult(BaseModel):
    ok: bool
    error: Optional[str] = None


class RefreshResult(BaseModel):
    status: str
    timestamp: Optional[int] = None
    history_size: int = 0
    error: Optional[str] = None


class MonitorStatus(BaseModel):
    loading: bool = True
    refreshing: bool = False
    error: Optional[str] = None
    history_size: int = 0
    last_updated: Optional[int] = None
    packet_count: int = 0


class FlowEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    match: Dict[str, Any] = {}
    actions: Union[List[str], str] = []
    priority: int = 0
    idle_timeout: int = 0
    hard_timeout: int = 0


class FlowEntryRequest(BaseModel):
    dpid: int
    cookie: Union[int, str] = 0
    priority: int = 0
    match: Dict[str, Any] = {}
    actions: List[Dict[str, Any]] = []


class SwitchDetail(BaseModel):
    dpid: int
    description: Dict[str, Any] = {}
    flows: List[FlowEntry] = []
