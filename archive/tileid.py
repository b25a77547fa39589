from __future__ import annotations

"""
Tile-ID addressing.

One 64-bit id space covers every zoom level. Zoom z owns the contiguous band
[(4^z - 1) / 3, (4^(z+1) - 1) / 3); inside a band tiles follow a Hilbert curve
over the 2^z x 2^z grid, so neighbouring tiles get neighbouring ids.

The curve itself comes from pmtiles.tile; this module pins down the accepted
ranges and the errors raised outside them.
"""

from typing import Tuple

from pmtiles.tile import tileid_to_zxy as _tileid_to_zxy
from pmtiles.tile import zxy_to_tileid as _zxy_to_tileid

from common.errors import TileIdRangeError


MAX_ZOOM = 31


def zoom_base(z: int) -> int:
    """First tile id of zoom level z (number of tiles on all lower zooms)."""
    return ((1 << (2 * z)) - 1) // 3


MAX_TILE_ID = zoom_base(MAX_ZOOM + 1) - 1


def _check_tile_id(tile_id: int) -> None:
    if tile_id < 0 or tile_id > MAX_TILE_ID:
        raise TileIdRangeError(f"tile id {tile_id} exceeds 64-bit zoom limit")


def zxy_to_tileid(z: int, x: int, y: int) -> int:
    if z < 0 or z > MAX_ZOOM:
        raise TileIdRangeError(f"zoom {z} outside 0..{MAX_ZOOM}")
    n = 1 << z
    if not (0 <= x < n and 0 <= y < n):
        raise ValueError(f"tile x/y ({x},{y}) outside zoom {z} bounds")
    return _zxy_to_tileid(z, x, y)


def tileid_zoom(tile_id: int) -> int:
    """Zoom band containing tile_id."""
    _check_tile_id(tile_id)
    # zoom_base(z) <= id < zoom_base(z+1)  <=>  4^z <= 3*id + 1 < 4^(z+1)
    return ((3 * tile_id + 1).bit_length() - 1) // 2


def tileid_to_zxy(tile_id: int) -> Tuple[int, int, int]:
    _check_tile_id(tile_id)
    z, x, y = _tileid_to_zxy(tile_id)
    return z, x, y
