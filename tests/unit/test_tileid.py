"""
Unit tests for tile-id addressing
"""

import pytest
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from archive.tileid import (
    MAX_TILE_ID,
    MAX_ZOOM,
    tileid_to_zxy,
    tileid_zoom,
    zoom_base,
    zxy_to_tileid,
)
from common.errors import TileIdRangeError


class TestKnownIds:
    @pytest.mark.parametrize(
        "zxy, tile_id",
        [
            ((0, 0, 0), 0),
            ((1, 0, 0), 1),
            ((1, 0, 1), 2),
            ((1, 1, 1), 3),
            ((1, 1, 0), 4),
            ((2, 0, 0), 5),
            ((3, 0, 0), 21),
        ],
    )
    def test_forward_and_inverse(self, zxy, tile_id):
        assert zxy_to_tileid(*zxy) == tile_id
        assert tileid_to_zxy(tile_id) == zxy

    def test_zoom_base(self):
        assert [zoom_base(z) for z in range(5)] == [0, 1, 5, 21, 85]

    def test_deep_zooms_stay_in_their_band(self):
        for z, x, y in [(4, 3, 9), (8, 200, 17), (12, 4095, 0), (20, 123456, 654321), (31, 2**31 - 1, 5)]:
            tile_id = zxy_to_tileid(z, x, y)
            assert zoom_base(z) <= tile_id < zoom_base(z + 1)
            assert tileid_to_zxy(tile_id) == (z, x, y)


class TestBijection:
    def test_every_id_round_trips_through_zoom_6(self):
        for tile_id in range(zoom_base(7)):
            assert zxy_to_tileid(*tileid_to_zxy(tile_id)) == tile_id

    def test_every_tile_round_trips_through_zoom_5(self):
        for z in range(6):
            n = 1 << z
            seen = set()
            for x in range(n):
                for y in range(n):
                    tile_id = zxy_to_tileid(z, x, y)
                    assert tileid_to_zxy(tile_id) == (z, x, y)
                    seen.add(tile_id)
            # the zoom band is covered exactly
            assert seen == set(range(zoom_base(z), zoom_base(z + 1)))

    def test_zoom_banding_is_monotonic(self):
        zooms = [tileid_zoom(i) for i in range(zoom_base(6))]
        assert zooms == sorted(zooms)
        for z in range(1, 6):
            assert tileid_zoom(zoom_base(z) - 1) == z - 1
            assert tileid_zoom(zoom_base(z)) == z

    def test_consecutive_ids_are_neighbouring_tiles(self):
        z = 4
        prev = tileid_to_zxy(zoom_base(z))
        for tile_id in range(zoom_base(z) + 1, zoom_base(z + 1)):
            cur = tileid_to_zxy(tile_id)
            assert abs(cur[1] - prev[1]) + abs(cur[2] - prev[2]) == 1
            prev = cur


class TestLimits:
    def test_max_tile_id(self):
        z, x, y = tileid_to_zxy(MAX_TILE_ID)
        assert z == MAX_ZOOM
        assert (x, y) == (2**MAX_ZOOM - 1, 0)
        assert zxy_to_tileid(z, x, y) == MAX_TILE_ID
        assert MAX_TILE_ID < 2**64

    def test_id_beyond_max_zoom(self):
        with pytest.raises(TileIdRangeError):
            tileid_to_zxy(MAX_TILE_ID + 1)
        with pytest.raises(OverflowError):
            tileid_zoom(MAX_TILE_ID + 1)

    def test_negative_id(self):
        with pytest.raises(TileIdRangeError):
            tileid_to_zxy(-1)

    def test_zoom_beyond_max(self):
        with pytest.raises(TileIdRangeError):
            zxy_to_tileid(MAX_ZOOM + 1, 0, 0)

    @pytest.mark.parametrize("zxy", [(1, 2, 0), (1, 0, 2), (3, -1, 0), (0, 1, 0)])
    def test_xy_outside_zoom(self, zxy):
        with pytest.raises(ValueError):
            zxy_to_tileid(*zxy)
