"""Quadrant key addressing for the provider's tile pyramid.

Each character of a quadkey selects one quadrant of its parent tile, so the
key of a tile is always a prefix of the keys of all tiles it contains.
"""

from __future__ import annotations

from ..models import TileCoordinate


def tile_to_quadkey(column: int, row: int, zoom: int) -> str:
    digits = []
    for level in range(zoom, 0, -1):
        mask = 1 << (level - 1)
        digit = 0
        if column & mask:
            digit += 1
        if row & mask:
            digit += 2
        digits.append(str(digit))
    return "".join(digits)


def encode(coordinate: TileCoordinate) -> str:
    return tile_to_quadkey(coordinate.column, coordinate.row, coordinate.zoom)


def quadkey_to_tile(quadkey: str) -> TileCoordinate:
    """Invert :func:`tile_to_quadkey`.

    Raises:
        ValueError: If ``quadkey`` contains a character outside ``0``-``3``.
    """

    column = row = 0
    zoom = len(quadkey)
    for index, char in enumerate(quadkey):
        mask = 1 << (zoom - index - 1)
        if char == "0":
            continue
        if char == "1":
            column |= mask
        elif char == "2":
            row |= mask
        elif char == "3":
            column |= mask
            row |= mask
        else:
            raise ValueError(f"Invalid quadkey digit {char!r} in {quadkey!r}.")
    return TileCoordinate(column=column, row=row, zoom=zoom)
