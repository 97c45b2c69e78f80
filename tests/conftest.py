import asyncio

import pytest

from app.models import BoundingBox, CoverageArea, ImageryProvider, TileSourceDescriptor

URL_TEMPLATE = "https://ecn.{subdomain}.tiles.virtualearth.net/tiles/a{quadkey}.jpeg?g=14&mkt={culture}"


def make_descriptor() -> TileSourceDescriptor:
    return TileSourceDescriptor(
        url_template=URL_TEMPLATE,
        subdomains=("t0", "t1", "t2", "t3"),
        imagery_providers=(
            ImageryProvider(attribution="© Microsoft"),
            ImageryProvider(
                attribution="© Europe Aerials",
                coverage_areas=(
                    CoverageArea(bbox=BoundingBox(south=35.0, west=-10.0, north=70.0, east=40.0)),
                ),
            ),
            ImageryProvider(
                attribution="© City Survey",
                coverage_areas=(
                    CoverageArea(
                        bbox=BoundingBox(south=47.0, west=-123.0, north=48.0, east=-122.0),
                        zoom_min=13,
                        zoom_max=21,
                    ),
                ),
            ),
        ),
    )


class RecordingMap:
    def __init__(self, bounds: BoundingBox = BoundingBox.WORLD, zoom: int = 3):
        self.bounds = bounds
        self.zoom = zoom
        self.added: list[str] = []
        self.removed: list[str] = []

    def get_bounds(self) -> BoundingBox:
        return self.bounds

    def get_zoom(self) -> int:
        return self.zoom

    def add_attribution(self, text: str) -> None:
        self.added.append(text)

    def remove_attribution(self, text: str) -> None:
        self.removed.append(text)


class FakeFetcher:
    """Metadata fetcher double that can hold the bootstrap open until released."""

    def __init__(self, descriptor=None, error=None, gated=False):
        self.descriptor = descriptor or make_descriptor()
        self.error = error
        self.gated = gated
        self.calls = 0
        self.point_calls: list[tuple] = []
        self._release: asyncio.Event | None = None

    def release(self) -> None:
        self._gate().set()

    def _gate(self) -> asyncio.Event:
        if self._release is None:
            self._release = asyncio.Event()
        return self._release

    async def fetch(self, imagery_set: str):
        self.calls += 1
        if self.gated:
            await self._gate().wait()
        if self.error is not None:
            raise self.error
        return self.descriptor

    async def fetch_point(self, imagery_set: str, lat: float, lng: float, zoom: int):
        self.point_calls.append((imagery_set, lat, lng, zoom))
        return {"imagerySet": imagery_set, "zoom": zoom}


@pytest.fixture
def descriptor():
    return make_descriptor()
