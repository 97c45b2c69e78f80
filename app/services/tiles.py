from __future__ import annotations

from typing import Sequence

from ..models import TileCoordinate, TileSourceDescriptor
from .quadkey import encode

QUADKEY_TOKEN = "{quadkey}"
SUBDOMAIN_TOKEN = "{subdomain}"
CULTURE_TOKEN = "{culture}"


def select_subdomain(coordinate: TileCoordinate, subdomains: Sequence[str]) -> str:
    """Pick the shard host for a tile; stable for a given coordinate."""

    if not subdomains:
        raise ValueError("At least one subdomain is required.")
    return subdomains[(coordinate.column + coordinate.row) % len(subdomains)]


def build_tile_url(
    descriptor: TileSourceDescriptor,
    coordinate: TileCoordinate,
    *,
    culture: str,
    style: str | None = None,
) -> str:
    url = (
        descriptor.url_template.replace(QUADKEY_TOKEN, encode(coordinate))
        .replace(SUBDOMAIN_TOKEN, select_subdomain(coordinate, descriptor.subdomains))
        .replace(CULTURE_TOKEN, culture)
    )
    if isinstance(style, str) and style:
        url += f"&st={style}"
    return url
