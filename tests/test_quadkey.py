import pytest

from app.models import MAX_ZOOM, TileCoordinate
from app.services.quadkey import encode, quadkey_to_tile, tile_to_quadkey


def test_hand_traced_quadkey():
    assert tile_to_quadkey(3, 5, 3) == "213"


def test_zoom_zero_is_empty_key():
    assert tile_to_quadkey(0, 0, 0) == ""


def test_digit_mapping_uses_column_for_one_and_row_for_two():
    assert tile_to_quadkey(0, 0, 1) == "0"
    assert tile_to_quadkey(1, 0, 1) == "1"
    assert tile_to_quadkey(0, 1, 1) == "2"
    assert tile_to_quadkey(1, 1, 1) == "3"


@pytest.mark.parametrize("zoom", [1, 2, 5, 9])
def test_keys_have_zoom_length_and_quadrant_alphabet(zoom):
    size = 1 << zoom
    for column in range(0, size, max(1, size // 7)):
        for row in range(0, size, max(1, size // 5)):
            key = tile_to_quadkey(column, row, zoom)
            assert len(key) == zoom
            assert set(key) <= set("0123")


def test_child_tiles_extend_parent_key():
    parent = TileCoordinate(column=6, row=11, zoom=4)
    parent_key = encode(parent)
    for dx in (0, 1):
        for dy in (0, 1):
            child = TileCoordinate(column=2 * parent.column + dx, row=2 * parent.row + dy, zoom=5)
            child_key = encode(child)
            assert child_key.startswith(parent_key)
            assert child_key[-1] == str(dx + 2 * dy)


def test_quadkey_to_tile_inverts_encoding():
    assert quadkey_to_tile("213") == TileCoordinate(column=3, row=5, zoom=3)
    assert quadkey_to_tile("") == TileCoordinate(column=0, row=0, zoom=0)


def test_quadkey_to_tile_rejects_foreign_digits():
    with pytest.raises(ValueError):
        quadkey_to_tile("0142")


def test_coordinate_outside_grid_is_rejected():
    with pytest.raises(ValueError):
        TileCoordinate(column=8, row=0, zoom=3)
    with pytest.raises(ValueError):
        TileCoordinate(column=0, row=0, zoom=-1)


@pytest.mark.parametrize("zoom", [MAX_ZOOM + 1, 2**63])
def test_zoom_beyond_pyramid_is_rejected(zoom):
    with pytest.raises(ValueError, match="Zoom level"):
        TileCoordinate(column=0, row=0, zoom=zoom)


def test_deepest_zoom_is_addressable():
    last = (1 << MAX_ZOOM) - 1

    assert tile_to_quadkey(last, last, MAX_ZOOM) == "3" * MAX_ZOOM
