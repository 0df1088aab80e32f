from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from aggs.dsl import to_search_aggs
from aggs.geohash import build_request
from aggs.params import geohash_params
from aggs.types import AggConfig, GeohashAggParams, VisContext
from engine.in_memory import SessionRegistry
from engine.types import MAP_BOUNDS_KEY, MAP_ZOOM_KEY
from geo.bounds import BoundingBox
from lod.precision import parse_zoom
from settings.registry import get_settings
from telemetry.singleton import get_store, reset_store

logger = logging.getLogger(__name__)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_sessions = SessionRegistry()


class ApiMapView(BaseModel):
    # {"top_left": {"lat", "lon"}, "bottom_right": {"lat", "lon"}}
    bounds: dict[str, dict[str, float]] | None = None
    zoom: float | None = Field(default=None, ge=0.0)


class ApiGeohashAggRequest(BaseModel):
    sessionId: str = "default"
    field: str = Field(min_length=1)
    params: GeohashAggParams = Field(default_factory=GeohashAggParams)
    map: ApiMapView = Field(default_factory=ApiMapView)
    uiState: dict[str, Any] | None = None


@app.post("/aggs/geohash")
def geohash_aggs(body: ApiGeohashAggRequest):
    t0 = time.perf_counter()
    session = _sessions.get_or_create(body.sessionId)

    if body.map.bounds is not None:
        try:
            bounds = BoundingBox.from_dict(body.map.bounds)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        session.set(MAP_BOUNDS_KEY, bounds.as_dict())
    if body.map.zoom is not None:
        session.set(MAP_ZOOM_KEY, body.map.zoom)

    agg = AggConfig(
        field_name=body.field,
        params=body.params,
        vis=VisContext(
            session_state=session,
            params={MAP_ZOOM_KEY: session.get(MAP_ZOOM_KEY)},
            ui_state=body.uiState,
        ),
    )
    req = build_request(agg, get_settings())
    total_ms = (time.perf_counter() - t0) * 1000.0

    collar = req.collar.as_dict() if req.collar is not None else None
    store = get_store()
    if store is not None:
        raw_zoom = session.get(MAP_ZOOM_KEY)
        zoom = parse_zoom(raw_zoom) if raw_zoom is not None else None
        store.record(
            endpoint="/aggs/geohash",
            session_id=body.sessionId,
            field_name=body.field,
            zoom=zoom,
            precision=req.precision,
            collar_recomputed=req.collar_recomputed,
            clause_types=[c.type for c in req.clauses],
            viewport=req.viewport.as_dict() if req.viewport is not None else None,
            stats={"timingsMs": {"total": total_ms}},
        )

    return {
        "aggs": [c.to_dict() for c in req.clauses],
        "searchAggs": to_search_aggs(req.clauses),
        "mapCollar": collar,
        "precision": req.precision,
        "collarRecomputed": req.collar_recomputed,
    }


@app.get("/aggs/geohash/params")
def geohash_agg_params():
    return [{"name": p.name, "default": p.default} for p in geohash_params(get_settings())]


@app.delete("/sessions/{session_id}")
def drop_session(session_id: str):
    if not _sessions.drop(session_id):
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return {"ok": True}


@app.get("/telemetry/summary")
def telemetry_summary(endpoint: str | None = None, since_ms: int | None = None):
    store = get_store()
    if store is None:
        return {"enabled": False, "rows": []}
    return {"enabled": True, "rows": store.summary(endpoint=endpoint, since_ms=since_ms)}


@app.post("/telemetry/reset")
def telemetry_reset():
    reset_store()
    logger.info("Telemetry store reset")
    return {"ok": True}
