from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from .config import BING_MAPS_KEY_ENV, TileSourceOptions
from .models import BoundingBox, TileCoordinate
from .services.metadata import MetadataError, TileSourceError, TransportError
from .services.session import PreconditionError, TileSourceSession

app = FastAPI(title="Imagery Tile Source", version="0.1.0")

logger = logging.getLogger(__name__)


class ServerMapView:
    """Server-side stand-in for the map viewer: last settled viewport plus shown attributions."""

    def __init__(self) -> None:
        self.bounds = BoundingBox.WORLD
        self.zoom = 1
        self.attributions: List[str] = []

    def get_bounds(self) -> BoundingBox:
        return self.bounds

    def get_zoom(self) -> int:
        return self.zoom

    def add_attribution(self, text: str) -> None:
        if text not in self.attributions:
            self.attributions.append(text)

    def remove_attribution(self, text: str) -> None:
        if text in self.attributions:
            self.attributions.remove(text)


class ViewportRequest(BaseModel):
    south: float
    west: float
    north: float
    east: float
    zoom: int | None = None


_session: TileSourceSession | None = None
_map_view = ServerMapView()


def get_tile_session() -> TileSourceSession:
    global _session
    if _session is None:
        _session = TileSourceSession(TileSourceOptions.from_env())
        _session.attach(_map_view)
    return _session


def get_map_view() -> ServerMapView:
    return _map_view


@app.on_event("startup")
async def on_startup() -> None:
    session = get_tile_session()
    if not session.options.api_key:
        logger.warning(
            "%s is not set; imagery metadata requests will be rejected by the provider.",
            BING_MAPS_KEY_ENV,
        )
        return
    session.prefetch()


def _coordinate(z: int, x: int, y: int) -> TileCoordinate:
    try:
        return TileCoordinate(column=x, row=y, zoom=z)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


async def _resolve_tile_url(session: TileSourceSession, coordinate: TileCoordinate) -> str:
    try:
        return await session.tile_url(coordinate)
    except TileSourceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except Exception as exc:
        # any other bootstrap failure is stored on the session and replayed to every caller
        if exc is not session.error:
            raise
        raise HTTPException(
            status_code=502, detail=f"Imagery metadata bootstrap failed: {exc!r}"
        ) from exc


@app.get("/tiles/{z}/{x}/{y}")
async def tile_redirect(
    z: int, x: int, y: int, session: TileSourceSession = Depends(get_tile_session)
) -> RedirectResponse:
    url = await _resolve_tile_url(session, _coordinate(z, x, y))
    return RedirectResponse(url, status_code=307)


@app.get("/tiles/{z}/{x}/{y}/url")
async def tile_url(
    z: int, x: int, y: int, session: TileSourceSession = Depends(get_tile_session)
) -> Dict[str, str]:
    url = await _resolve_tile_url(session, _coordinate(z, x, y))
    return {"url": url}


@app.post("/viewport")
async def settle_viewport(
    request: ViewportRequest,
    session: TileSourceSession = Depends(get_tile_session),
    map_view: ServerMapView = Depends(get_map_view),
) -> Dict[str, object]:
    if request.north < request.south:
        raise HTTPException(status_code=400, detail="North latitude must not be below south latitude.")
    map_view.bounds = BoundingBox(
        south=request.south, west=request.west, north=request.north, east=request.east
    )
    if request.zoom is not None:
        map_view.zoom = request.zoom
    session.on_viewport_settled()
    return {"attributions": list(map_view.attributions)}


@app.get("/attribution")
async def read_attribution(map_view: ServerMapView = Depends(get_map_view)) -> Dict[str, object]:
    return {"attributions": list(map_view.attributions)}


@app.get("/metadata/point")
async def point_metadata(
    lat: float | None = Query(default=None),
    lng: float | None = Query(default=None),
    z: int | None = Query(default=None),
    session: TileSourceSession = Depends(get_tile_session),
) -> Dict[str, object]:
    if (lat is None) != (lng is None):
        raise HTTPException(status_code=400, detail="lat and lng must be provided together")
    location = (lat, lng) if lat is not None else None
    try:
        resource = await session.get_point_metadata(location, z)
    except PreconditionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (MetadataError, TransportError) as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {"resource": resource}
