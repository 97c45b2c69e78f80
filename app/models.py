from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Sequence, Tuple

# Deepest level of the provider's tile pyramid.
MAX_ZOOM = 23


class SessionState(str, Enum):
    """Bootstrap lifecycle of a tile source session."""

    UNINITIALIZED = "uninitialized"
    BOOTSTRAPPING = "bootstrapping"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class TileCoordinate:
    column: int
    row: int
    zoom: int

    def __post_init__(self) -> None:
        if not 0 <= self.zoom <= MAX_ZOOM:
            raise ValueError(f"Zoom level must be between 0 and {MAX_ZOOM}, got {self.zoom}.")
        size = 1 << self.zoom
        if not (0 <= self.column < size and 0 <= self.row < size):
            raise ValueError(
                f"Tile ({self.column}, {self.row}) is outside the {size}x{size} grid at zoom {self.zoom}."
            )


@dataclass(frozen=True)
class BoundingBox:
    """Geographic rectangle in degrees, stored south/west/north/east."""

    south: float
    west: float
    north: float
    east: float

    WORLD: ClassVar["BoundingBox"]

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east

    def _longitude_spans(self) -> List[Tuple[float, float]]:
        if self.crosses_antimeridian:
            return [(self.west, 180.0), (-180.0, self.east)]
        return [(self.west, self.east)]

    def intersects(self, other: BoundingBox) -> bool:
        if other.north < self.south or other.south > self.north:
            return False
        return any(
            other_west <= east and other_east >= west
            for west, east in self._longitude_spans()
            for other_west, other_east in other._longitude_spans()
        )

    @property
    def center(self) -> Tuple[float, float]:
        lat = (self.south + self.north) / 2.0
        if not self.crosses_antimeridian:
            return lat, (self.west + self.east) / 2.0
        lng = (self.west + self.east + 360.0) / 2.0
        return lat, lng - 360.0 if lng > 180.0 else lng

    def as_list(self) -> list[float]:
        return [self.south, self.west, self.north, self.east]


BoundingBox.WORLD = BoundingBox(south=-90.0, west=-180.0, north=90.0, east=180.0)


def parse_bbox(value: str | Sequence[float | str]) -> BoundingBox:
    """Convert a provider-native ``west,south,east,north`` box into a :class:`BoundingBox`."""

    if isinstance(value, str):
        parts: Sequence[float | str] = value.split(",")
    else:
        parts = value
    if len(parts) != 4:
        raise ValueError(f"Expected four bounding box values, got {len(parts)}: {value!r}")
    west, south, east, north = (float(part) for part in parts)
    return BoundingBox(south=south, west=west, north=north, east=east)


@dataclass(frozen=True)
class CoverageArea:
    bbox: BoundingBox
    zoom_min: int | None = None
    zoom_max: int | None = None

    def applies_to(self, viewport: BoundingBox, zoom: int | None = None) -> bool:
        if zoom is not None:
            if self.zoom_min is not None and zoom < self.zoom_min:
                return False
            if self.zoom_max is not None and zoom > self.zoom_max:
                return False
        return self.bbox.intersects(viewport)


@dataclass(frozen=True)
class ImageryProvider:
    attribution: str
    coverage_areas: Tuple[CoverageArea, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TileSourceDescriptor:
    """Tiling scheme parameters returned by the imagery metadata service."""

    url_template: str
    subdomains: Tuple[str, ...]
    imagery_providers: Tuple[ImageryProvider, ...] = field(default_factory=tuple)
