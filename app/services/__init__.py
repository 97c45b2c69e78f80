"""Service utilities exposed by the ``app.services`` package."""

from .attribution import AttributionSynchronizer, compute_attributions, sync
from .metadata import MetadataError, MetadataFetcher, TileSourceError, TransportError
from .quadkey import encode, quadkey_to_tile, tile_to_quadkey
from .session import MapView, PreconditionError, TileSourceSession
from .tiles import build_tile_url, select_subdomain

__all__ = [
    "AttributionSynchronizer",
    "MapView",
    "MetadataError",
    "MetadataFetcher",
    "PreconditionError",
    "TileSourceError",
    "TileSourceSession",
    "TransportError",
    "build_tile_url",
    "compute_attributions",
    "encode",
    "quadkey_to_tile",
    "select_subdomain",
    "sync",
    "tile_to_quadkey",
]
