from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Tuple

from pmtiles.tile import Compression, TileType, deserialize_header

from common.errors import DecodeError


MAGIC = b"PMTiles"
SPEC_VERSION = 3
HEADER_LENGTH = 127


@dataclass(frozen=True, slots=True)
class Header:
    """
    Fixed 127-byte archive header.

    Offsets/lengths are absolute byte positions in the archive, except that
    leaf-pointer entries are relative to `leaf_directory_offset` and
    tile-pointer entries to `tile_data_offset`.
    Coordinates are stored as integer degrees * 1e7.
    """
    root_offset: int
    root_length: int
    metadata_offset: int
    metadata_length: int
    leaf_directory_offset: int
    leaf_directory_length: int
    tile_data_offset: int
    tile_data_length: int
    addressed_tiles_count: int
    tile_entries_count: int
    tile_contents_count: int
    clustered: bool
    internal_compression: Compression
    tile_compression: Compression
    tile_type: TileType
    min_zoom: int
    max_zoom: int
    min_lon_e7: int
    min_lat_e7: int
    max_lon_e7: int
    max_lat_e7: int
    center_zoom: int
    center_lon_e7: int
    center_lat_e7: int
    version: int = SPEC_VERSION

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        # [lon_min, lat_min, lon_max, lat_max]
        return (
            self.min_lon_e7 / 1e7,
            self.min_lat_e7 / 1e7,
            self.max_lon_e7 / 1e7,
            self.max_lat_e7 / 1e7,
        )

    @property
    def center(self) -> Tuple[float, float]:
        return (self.center_lon_e7 / 1e7, self.center_lat_e7 / 1e7)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view with enum names spelled out."""
        d = asdict(self)
        for k, v in d.items():
            if isinstance(v, Enum):
                d[k] = v.name.lower()
        d["bounds"] = list(self.bounds)
        d["center"] = list(self.center)
        return d


def decode_header(data: bytes) -> Header:
    """
    Parse the fixed header from the first HEADER_LENGTH bytes of `data`.

    Only the layout is checked (length, magic, version, known enum codes);
    field consistency is the verifier's business.
    """
    if len(data) < HEADER_LENGTH:
        raise DecodeError(f"header truncated: {len(data)} < {HEADER_LENGTH} bytes")
    magic = bytes(data[:7])
    if magic != MAGIC:
        raise DecodeError(f"bad magic {magic!r}, not a tile archive")
    if data[7] != SPEC_VERSION:
        raise DecodeError(f"unsupported archive version {data[7]}")
    try:
        fields = deserialize_header(data[:HEADER_LENGTH])
    except ValueError as e:
        # Compression / TileType code outside the known set
        raise DecodeError(f"unknown header code: {e}") from e
    return Header(**fields)
