from __future__ import annotations

import time
from typing import Dict, Iterable, List

from models import BreakdownEntry, ProtocolCard, ProtocolCounters, ProtocolSeries, SeriesView, Snapshot

EXCLUDED_PROTOCOLS = frozenset({"dns", "other"})

PROTOCOL_COLORS = {
    "http": (75, 192, 192),
    "https": (54, 162, 235),
    "ftp": (255, 159, 64),
    "smtp": (153, 102, 255),
    "pop3": (255, 99, 132),
    "imap": (255, 205, 86),
}
FALLBACK_COLOR = (199, 199, 199)

BYTE_UNITS = ["Bytes", "KB", "MB", "GB"]


def protocol_color(protocol: str, opacity: float = 1) -> str:
    r, g, b = PROTOCOL_COLORS.get(protocol, FALLBACK_COLOR)
    return f"rgba({r}, {g}, {b}, {opacity:g})"


def format_bytes(n: float) -> str:
    if n == 0:
        return "0 Bytes"
    value = float(n)
    i = 0
    while abs(value) >= 1024 and i < len(BYTE_UNITS) - 1:
        value /= 1024
        i += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {BYTE_UNITS[i]}"


def format_packet_time(timestamp: float) -> str:
    return time.strftime("%H:%M:%S", time.localtime(timestamp))


def filter_protocols(counters: ProtocolCounters) -> ProtocolCounters:
    return {name: stats for name, stats in counters.items() if name not in EXCLUDED_PROTOCOLS}


def series_projection(window: Iterable[Snapshot], current: ProtocolCounters) -> SeriesView:
    """Per-protocol byte series aligned with the window's snapshots.

    Protocols come from the current counters; a snapshot without a protocol
    contributes 0 for it.
    """
    window = list(window)
    series: List[ProtocolSeries] = []
    for protocol in filter_protocols(current):
        series.append(ProtocolSeries(
            protocol=protocol,
            values=[s.counters[protocol].bytes if protocol in s.counters else 0 for s in window],
            border_color=protocol_color(protocol),
            background_color=protocol_color(protocol, 0.1),
        ))
    return SeriesView(
        labels=[format_packet_time(s.timestamp) for s in window],
        timestamps=[s.timestamp for s in window],
        series=series,
    )


def breakdown_projection(current: ProtocolCounters) -> Dict[str, BreakdownEntry]:
    included = filter_protocols(current)
    total = sum(stats.bytes for stats in included.values())
    return {
        protocol: BreakdownEntry(
            bytes=stats.bytes,
            percent=round(100 * stats.bytes / total, 2) if total else 0.0,
            color=protocol_color(protocol, 0.7),
        )
        for protocol, stats in included.items()
    }


def protocol_cards(current: ProtocolCounters) -> List[ProtocolCard]:
    return [
        ProtocolCard(
            protocol=protocol,
            packets=stats.packets,
            bytes=stats.bytes,
            bytes_display=format_bytes(stats.bytes),
        )
        for protocol, stats in filter_protocols(current).items()
    ]
