import asyncio

import httpx
import pytest

from errors import SourceProtocolError, SourceUnavailable
from fetcher import StatsSource
from models import FlowEntryRequest

BASE = "http://controller:8080"


def make_source(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE)
    return StatsSource(BASE, client=client)


def run(coro):
    return asyncio.run(coro)


def test_fetch_protocols():
    def handler(request):
        assert request.url.path == "/stats/protocol"
        return httpx.Response(200, json={"protocols": {
            "http": {"packets": 5, "bytes": 500},
            "dns": {"packets": 1, "bytes": 50},
        }})

    counters = run(make_source(handler).fetch_protocols())
    assert counters["http"].bytes == 500
    assert counters["dns"].packets == 1


def test_connection_failure_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SourceUnavailable):
        run(make_source(handler).fetch_protocols())


def test_error_status_is_protocol_error():
    source = make_source(lambda request: httpx.Response(503))
    with pytest.raises(SourceProtocolError) as exc_info:
        run(source.fetch_protocols())
    assert exc_info.value.status_code == 503


@pytest.mark.parametrize("response", [
    httpx.Response(200, content=b"<html>not json</html>"),
    httpx.Response(200, json={"unexpected": True}),
    httpx.Response(200, json={"protocols": {"http": {"packets": -4, "bytes": 1}}}),
    httpx.Response(200, json=["protocols"]),
])
def test_malformed_payload_is_protocol_error(response):
    with pytest.raises(SourceProtocolError):
        run(make_source(lambda request: response).fetch_protocols())


def test_fetch_packet_summaries():
    summary = {
        "timestamp": 1700000000.5,
        "dpid": 1,
        "in_port": 3,
        "eth_src": "00:00:00:00:00:01",
        "eth_dst": "00:00:00:00:00:02",
        "eth_type": "0x0800",
        "ip_src": "10.0.0.1",
        "ip_dst": "10.0.0.2",
        "ip_proto": 6,
        "src_port": 40000,
        "dst_port": 80,
        "packet_len": 74,
        "protocol_identified": "http",
    }

    def handler(request):
        assert request.url.path == "/stats/packet_summaries"
        return httpx.Response(200, json={"packet_summaries": [summary]})

    packets = run(make_source(handler).fetch_packet_summaries())
    assert len(packets) == 1
    assert packets[0].dst_port == 80


def test_missing_packet_summaries_is_empty():
    packets = run(make_source(lambda request: httpx.Response(200, json={})).fetch_packet_summaries())
    assert packets == []


def test_switch_queries():
    def handler(request):
        path = request.url.path
        if path == "/stats/switches":
            return httpx.Response(200, json=[1, 2])
        if path == "/stats/flow/1":
            return httpx.Response(200, json={"1": [{
                "match": {"in_port": 1},
                "actions": ["OUTPUT:2"],
                "priority": 10,
                "idle_timeout": 0,
                "hard_timeout": 0,
                "packet_count": 7,
            }]})
        if path == "/stats/desc/1":
            return httpx.Response(200, json={"1": {"mfr_desc": "Nicira, Inc."}})
        return httpx.Response(404)

    source = make_source(handler)
    assert run(source.fetch_switches()) == [1, 2]
    flows = run(source.fetch_flows(1))
    assert flows[0].priority == 10
    assert flows[0].actions == ["OUTPUT:2"]
    assert run(source.fetch_description(1)) == {"mfr_desc": "Nicira, Inc."}


def test_unknown_switch_key_is_empty():
    source = make_source(lambda request: httpx.Response(200, json={}))
    assert run(source.fetch_flows(9)) == []
    assert run(source.fetch_description(9)) == {}


def test_add_flow_entry_posts_body():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = request.read()
        return httpx.Response(200)

    entry = FlowEntryRequest(dpid=1, priority=5, match={"in_port": 1})
    run(make_source(handler).add_flow_entry(entry))
    assert seen["method"] == "POST"
    assert seen["path"] == "/stats/flowentry/add"
    assert b'"priority":5' in seen["body"].replace(b" ", b"")


def test_add_flow_entry_rejected():
    source = make_source(lambda request: httpx.Response(400))
    with pytest.raises(SourceProtocolError):
        run(source.add_flow_entry(FlowEntryRequest(dpid=1)))
