from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from errors import SourceProtocolError, SourceUnavailable
from models import FlowEntry, FlowEntryRequest, PacketSummary, ProtocolCounters, ProtocolStats

logger = logging.getLogger(f"trafficwatch.{__name__}")

PROTOCOL_PATH = "/stats/protocol"
PACKET_SUMMARIES_PATH = "/stats/packet_summaries"
SWITCHES_PATH = "/stats/switches"
FLOW_PATH = "/stats/flow/{dpid}"
DESC_PATH = "/stats/desc/{dpid}"
FLOW_ADD_PATH = "/stats/flowentry/add"

_counters_adapter = TypeAdapter(Dict[str, ProtocolStats])
_packets_adapter = TypeAdapter(List[PacketSummary])
_flows_adapter = TypeAdapter(List[FlowEntry])
_switches_adapter = TypeAdapter(List[int])


class StatsSource:
    """Pull-based client for the controller's statistics REST API.

    Transport failures become ``SourceUnavailable``; bad statuses and bodies
    become ``SourceProtocolError``. Nothing is retried.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8080",
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def close(self):
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"Controller unreachable ({method} {path}): {e}")
            raise SourceUnavailable(f"{method} {path}: {e}") from e
        if not resp.is_success:
            logger.warning(f"Controller returned {resp.status_code} for {method} {path}")
            raise SourceProtocolError(
                f"{method} {path} returned {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp

    async def _get_json(self, path: str) -> Any:
        resp = await self._request("GET", path)
        try:
            return resp.json()
        except ValueError as e:
            raise SourceProtocolError(f"GET {path}: body is not JSON") from e

    async def fetch_protocols(self) -> ProtocolCounters:
        data = await self._get_json(PROTOCOL_PATH)
        if not isinstance(data, dict) or "protocols" not in data:
            raise SourceProtocolError(f"GET {PROTOCOL_PATH}: missing 'protocols'")
        try:
            return _counters_adapter.validate_python(data["protocols"])
        except ValidationError as e:
            raise SourceProtocolError(f"GET {PROTOCOL_PATH}: {e}") from e

    async def fetch_packet_summaries(self) -> List[PacketSummary]:
        data = await self._get_json(PACKET_SUMMARIES_PATH)
        if not isinstance(data, dict):
            raise SourceProtocolError(f"GET {PACKET_SUMMARIES_PATH}: expected an object")
        try:
            return _packets_adapter.validate_python(data.get("packet_summaries") or [])
        except ValidationError as e:
            raise SourceProtocolError(f"GET {PACKET_SUMMARIES_PATH}: {e}") from e

    async def fetch_switches(self) -> List[int]:
        data = await self._get_json(SWITCHES_PATH)
        try:
            return _switches_adapter.validate_python(data)
        except ValidationError as e:
            raise SourceProtocolError(f"GET {SWITCHES_PATH}: {e}") from e

    async def fetch_flows(self, dpid: int) -> List[FlowEntry]:
        path = FLOW_PATH.format(dpid=dpid)
        data = await self._get_json(path)
        if not isinstance(data, dict):
            raise SourceProtocolError(f"GET {path}: expected an object")
        try:
            return _flows_adapter.validate_python(data.get(str(dpid)) or [])
        except ValidationError as e:
            raise SourceProtocolError(f"GET {path}: {e}") from e

    async def fetch_description(self, dpid: int) -> Dict[str, Any]:
        path = DESC_PATH.format(dpid=dpid)
        data = await self._get_json(path)
        if not isinstance(data, dict):
            raise SourceProtocolError(f"GET {path}: expected an object")
        desc = data.get(str(dpid)) or {}
        if not isinstance(desc, dict):
            raise SourceProtocolError(f"GET {path}: description is not an object")
        return desc

    async def add_flow_entry(self, entry: FlowEntryRequest) -> None:
        await self._request("POST", FLOW_ADD_PATH, json=entry.model_dump())
