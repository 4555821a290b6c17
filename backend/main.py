from __future__ import annotations

import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.deps import get_overlay_store, get_sources
from api.models import (
    CreateAnalysisRequest,
    EventsRequest,
    EventsResponse,
    OverlayKindEnum,
    ProcessAnalysisRequest,
    SearchPoiRequest,
)
from api.sessions import (
    SessionPump,
    create_session,
    drop_sessions,
    forget_session,
    load_session,
)
from layers.errors import AnalysisNotFound, SourceError
from persistence.codec import encode_poi
from persistence.store import OverlayStore
from render.scene import build_scene
from session.context import AnalysisSession
from settings.registry import get_settings
from sources.pipeline import fetch_analysis_data
from sources.search import search_poi
from sources.types import SiteLocation, SourceBundle


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Settled edits are written in the background; shutdown flushes the rest.
    pump = SessionPump(interval_s=get_settings().persistence.pumpIntervalSeconds)
    pump.start()
    try:
        yield
    finally:
        pump.stop()
        drop_sessions()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AnalysisNotFound)
def _analysis_not_found(_: Request, exc: AnalysisNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(SourceError)
def _source_error(_: Request, exc: SourceError):
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def _summary(session: AnalysisSession) -> dict[str, Any]:
    with session.lock:
        return {
            "analysisId": session.analysis_id,
            "state": session.to_state(),
            "scene": build_scene(session),
        }


@app.get("/analysis")
def list_analyses(store: OverlayStore = Depends(get_overlay_store)):
    return {"analyses": store.list_analyses()}


@app.post("/analysis")
def create_analysis(
    body: CreateAnalysisRequest, store: OverlayStore = Depends(get_overlay_store)
):
    analysis_id = body.analysisId or uuid.uuid4().hex
    session = create_session(
        analysis_id,
        body.to_data(),
        store=store,
        width=body.surface.width if body.surface else None,
        height=body.surface.height if body.surface else None,
    )
    return _summary(session)


@app.post("/analysis/process")
async def process_analysis(
    body: ProcessAnalysisRequest,
    store: OverlayStore = Depends(get_overlay_store),
    sources: SourceBundle = Depends(get_sources),
):
    if body.site is not None:
        site = SiteLocation(lat=body.site.lat, lon=body.site.lng, address=body.site.address)
    elif body.address:
        site = await asyncio.to_thread(sources.geocoder.geocode, body.address)
        if site is None:
            raise HTTPException(status_code=422, detail=f"Address not found: {body.address}")
    else:
        raise HTTPException(status_code=422, detail="Either site or address is required")

    data = await fetch_analysis_data(
        site,
        radius_miles=body.radiusMiles,
        counts=body.pois,
        poi_source=sources.poi_source,
        road_source=sources.road_source,
        resolver=sources.resolver,
        settings=get_settings().sources,
    )
    session = create_session(
        body.analysisId or uuid.uuid4().hex,
        data,
        store=store,
        width=body.surface.width if body.surface else None,
        height=body.surface.height if body.surface else None,
    )
    return _summary(session)


@app.get("/analysis/{analysis_id}")
def get_analysis(analysis_id: str, store: OverlayStore = Depends(get_overlay_store)):
    session = load_session(analysis_id, store=store)
    with session.lock:
        return {"analysisId": analysis_id, "state": session.to_state()}


@app.delete("/analysis/{analysis_id}")
def delete_analysis(analysis_id: str, store: OverlayStore = Depends(get_overlay_store)):
    if not store.read(analysis_id):
        raise AnalysisNotFound(analysis_id)
    forget_session(analysis_id)
    store.delete(analysis_id)
    return {"analysisId": analysis_id, "deleted": True}


@app.put("/analysis/{analysis_id}/{kind}")
def put_overlay(
    analysis_id: str,
    kind: OverlayKindEnum,
    payload: dict[str, Any],
    store: OverlayStore = Depends(get_overlay_store),
):
    session = load_session(analysis_id, store=store)
    with session.lock:
        try:
            session.apply_state({kind.value: payload})
        except (KeyError, TypeError, ValueError, IndexError) as e:
            raise HTTPException(status_code=422, detail=f"Invalid {kind.value} payload: {e}")
        session.save((kind.value,))
        return {"analysisId": analysis_id, kind.value: session.payload(kind.value)}


@app.post("/analysis/{analysis_id}/events", response_model=EventsResponse)
def post_events(
    analysis_id: str,
    body: EventsRequest,
    store: OverlayStore = Depends(get_overlay_store),
):
    session = load_session(analysis_id, store=store)
    # One batch at a time per analysis: pointer streams never interleave.
    with session.lock:
        controller = session.controller
        if body.surface is not None:
            session.resize_surface(body.surface.width, body.surface.height)
        if body.exit:
            controller.exit()
        if body.toggle is not None:
            controller.toggle(body.toggle)
        if body.enter is not None:
            controller.enter(body.enter)

        notices = controller.drain_notices()
        for event in body.events:
            notices.extend(session.dispatch(event.to_event()))
        if body.flush:
            session.flush()

        return EventsResponse(
            mode=controller.mode,
            availableModes={m.value: ok for m, ok in controller.available_modes().items()},
            notices=[{"level": n.level, "message": n.message} for n in notices],
            scene=build_scene(session),
        )


@app.post("/analysis/{analysis_id}/search")
def search_and_add_poi(
    analysis_id: str,
    body: SearchPoiRequest,
    store: OverlayStore = Depends(get_overlay_store),
    sources: SourceBundle = Depends(get_sources),
):
    if sources.place_search is None:
        raise HTTPException(status_code=503, detail="Place search is not configured")
    session = load_session(analysis_id, store=store)
    s = get_settings().sources
    with session.lock:
        site = session.data.site
        existing = [p for pois in session.data.pois_by_category.values() for p in pois]

    # Network lookups run without holding the session.
    outcome = search_poi(
        body.query,
        SiteLocation(lat=site.lat, lon=site.lon, address=site.address),
        existing,
        search=sources.place_search,
        resolver=sources.resolver,
        details=sources.place_details,
        radius_miles=body.radiusMiles or s.searchRadiusMiles,
        limit=s.searchLimit,
        allow_without_logo=body.addWithoutLogo,
    )

    status = outcome.status
    if outcome.status == "found" and outcome.poi is not None:
        session.add_poi(outcome.poi)
        status = "added"
    with session.lock:
        return {
            "analysisId": analysis_id,
            "status": status,
            "inRange": outcome.in_range,
            "poi": encode_poi(outcome.poi) if outcome.poi is not None else None,
            "scene": build_scene(session),
        }


@app.get("/analysis/{analysis_id}/scene")
def get_scene(analysis_id: str, store: OverlayStore = Depends(get_overlay_store)):
    session = load_session(analysis_id, store=store)
    with session.lock:
        return build_scene(session)
