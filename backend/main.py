from __future__ import annotations

import asyncio
import time
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from config import get_settings, init_logging
from errors import SourceError
from models import (
    BreakdownEntry,
    FlowEntryRequest,
    MonitorStatus,
    PacketPage,
    ProtocolCard,
    RefreshResult,
    SeriesView,
    SwitchDetail,
    TimeRange,
)
from monitor import PACKETS_ERROR, MonitorSession

settings = get_settings()
logger = init_logging(settings)

app = FastAPI(title="TrafficWatch", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

session = MonitorSession.from_settings(settings)


@app.on_event("startup")
async def on_startup():
    logger.info(f"Monitoring controller at {settings.controller_url}")
    await session.start()


@app.on_event("shutdown")
async def on_shutdown():
    await session.close()


@app.get("/api/health")
def health():
    return {"status": "ok", "timestamp": time.time()}


@app.get("/api/status", response_model=MonitorStatus)
def get_status():
    return session.status()


@app.post("/api/refresh", response_model=RefreshResult)
async def refresh():
    return await session.refresh()


@app.get("/api/protocols", response_model=List[ProtocolCard])
def get_protocols():
    return session.cards()


@app.get("/api/series", response_model=SeriesView)
def get_series(time_range: TimeRange = Query(TimeRange.FIFTEEN_MINUTES, alias="range")):
    return session.series(time_range)


@app.get("/api/breakdown", response_model=Dict[str, BreakdownEntry])
def get_breakdown():
    return session.breakdown()


@app.get("/api/packets", response_model=PacketPage)
def get_packets(page: Optional[int] = None):
    if page is not None and not session.set_page(page):
        logger.debug(f"Ignoring out-of-range page {page}")
    return session.page()


@app.post("/api/packets/reload", response_model=PacketPage)
async def reload_packets():
    if not await session.load_packets():
        raise HTTPException(status_code=502, detail=PACKETS_ERROR)
    return session.page()


@app.get("/api/switches", response_model=List[int])
async def list_switches():
    try:
        return await session.source.fetch_switches()
    except SourceError as e:
        raise HTTPException(status_code=502, detail=str(e))


@app.get("/api/switches/{dpid}", response_model=SwitchDetail)
async def get_switch(dpid: int):
    try:
        flows, description = await asyncio.gather(
            session.source.fetch_flows(dpid),
            session.source.fetch_description(dpid),
        )
    except SourceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return SwitchDetail(dpid=dpid, description=description, flows=flows)


@app.post("/api/switches/{dpid}/flows", status_code=201)
async def add_flow(dpid: int, entry: FlowEntryRequest):
    if entry.dpid != dpid:
        raise HTTPException(status_code=400, detail="dpid in body does not match path")
    try:
        await session.source.add_flow_entry(entry)
    except SourceError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"status": "added", "dpid": dpid}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
