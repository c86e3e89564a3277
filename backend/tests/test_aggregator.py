import pytest

from aggregator import (
    breakdown_projection,
    filter_protocols,
    format_bytes,
    format_packet_time,
    protocol_cards,
    protocol_color,
    series_projection,
)
from models import ProtocolStats, Snapshot


def counters(**byte_counts):
    return {name: ProtocolStats(packets=1, bytes=b) for name, b in byte_counts.items()}


@pytest.mark.parametrize("n, expected", [
    (0, "0 Bytes"),
    (1, "1 Bytes"),
    (1023, "1023 Bytes"),
    (1024, "1 KB"),
    (1536, "1.5 KB"),
    (1024 * 1024, "1 MB"),
    (1024 ** 3, "1 GB"),
    (5 * 1024 ** 4, "5120 GB"),
])
def test_format_bytes(n, expected):
    assert format_bytes(n) == expected


def test_format_bytes_rounds_to_two_places():
    assert format_bytes(1234) == "1.21 KB"


def test_protocol_colors():
    assert protocol_color("http") == "rgba(75, 192, 192, 1)"
    assert protocol_color("https", 0.7) == "rgba(54, 162, 235, 0.7)"
    assert protocol_color("quic", 0.1) == "rgba(199, 199, 199, 0.1)"
    assert protocol_color("quic") == protocol_color("rtp")


def test_filter_protocols_drops_denylist():
    assert set(filter_protocols(counters(http=1, dns=2, other=3, ftp=4))) == {"http", "ftp"}


def test_series_aligned_with_window():
    window = [
        Snapshot(timestamp=0, counters=counters(http=500)),
        Snapshot(timestamp=10, counters=counters(http=900)),
        Snapshot(timestamp=20, counters=counters(http=200, ftp=70, dns=50)),
    ]
    view = series_projection(window, counters(http=200, ftp=70, dns=50))

    assert view.timestamps == [0, 10, 20]
    assert view.labels == [format_packet_time(ts) for ts in (0, 10, 20)]
    assert view.values_for("http") == [500, 900, 200]
    assert view.values_for("ftp") == [0, 0, 70]
    assert view.values_for("dns") is None


def test_series_colors():
    view = series_projection([Snapshot(timestamp=0, counters=counters(smtp=1))], counters(smtp=1))
    assert view.series[0].border_color == "rgba(153, 102, 255, 1)"
    assert view.series[0].background_color == "rgba(153, 102, 255, 0.1)"


def test_series_empty_window():
    view = series_projection([], counters(http=10))
    assert view.labels == []
    assert view.values_for("http") == []


def test_breakdown_percentages_sum_to_100():
    result = breakdown_projection(counters(http=300, https=600, ftp=100, dns=5000))
    assert set(result) == {"http", "https", "ftp"}
    assert result["https"].percent == 60.0
    assert result["http"].bytes == 300
    assert sum(e.percent for e in result.values()) == pytest.approx(100, abs=0.05)


def test_breakdown_uneven_shares_round():
    result = breakdown_projection(counters(http=1, https=1, ftp=1))
    assert result["http"].percent == 33.33
    assert sum(e.percent for e in result.values()) == pytest.approx(100, abs=0.05)


def test_breakdown_zero_total():
    result = breakdown_projection(counters(http=0, ftp=0))
    assert [e.percent for e in result.values()] == [0.0, 0.0]


def test_breakdown_empty():
    assert breakdown_projection({}) == {}


def test_protocol_cards():
    cards = protocol_cards(counters(http=1536, other=9))
    assert len(cards) == 1
    assert cards[0].protocol == "http"
    assert cards[0].bytes_display == "1.5 KB"
