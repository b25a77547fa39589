"""
Test-only archive encoder.

Production code only reads archives; these helpers build small ones in memory
so tests can control every header field and directory byte.

A tree is a list whose items are either archive.Entry tile pointers or nested
lists (subtrees). Subtrees become leaf directories; the leaf pointer gets the
first tile id found in the subtree.
"""

import gzip
import os
import struct
import sys
from enum import Enum
from typing import Dict, List, Optional, Sequence

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(project_root)

from archive.directory import Entry
from archive.header import HEADER_LENGTH, MAGIC, Compression
from archive.tileid import tileid_zoom
from common.errors import FetchError
from storage.base import Bucket


def encode_varint(v: int) -> bytes:
    out = bytearray()
    while True:
        b = v & 0x7F
        v >>= 7
        if v:
            out.append(b | 0x80)
        else:
            out.append(b)
            return bytes(out)


def encode_entries(entries: Sequence[Entry], compression: Compression = Compression.NONE) -> bytes:
    buf = bytearray(encode_varint(len(entries)))
    last = 0
    for e in entries:
        buf += encode_varint(e.tile_id - last)
        last = e.tile_id
    for e in entries:
        buf += encode_varint(e.run_length)
    for e in entries:
        buf += encode_varint(e.length)
    for i, e in enumerate(entries):
        if i > 0 and e.offset == entries[i - 1].offset + entries[i - 1].length:
            buf += encode_varint(0)
        else:
            buf += encode_varint(e.offset + 1)
    if compression == Compression.GZIP:
        return gzip.compress(bytes(buf))
    return bytes(buf)


def _code(v) -> int:
    return v.value if isinstance(v, Enum) else v


def encode_header(**f) -> bytes:
    return struct.pack(
        "<7sB11Q6B4iB2i",
        f.get("magic", MAGIC),
        f.get("version", 3),
        f.get("root_offset", HEADER_LENGTH),
        f.get("root_length", 0),
        f.get("metadata_offset", 0),
        f.get("metadata_length", 0),
        f.get("leaf_directory_offset", 0),
        f.get("leaf_directory_length", 0),
        f.get("tile_data_offset", 0),
        f.get("tile_data_length", 0),
        f.get("addressed_tiles_count", 0),
        f.get("tile_entries_count", 0),
        f.get("tile_contents_count", 0),
        1 if f.get("clustered", False) else 0,
        _code(f.get("internal_compression", Compression.NONE)),
        _code(f.get("tile_compression", Compression.NONE)),
        _code(f.get("tile_type", 1)),
        f.get("min_zoom", 0),
        f.get("max_zoom", 0),
        f.get("min_lon_e7", -1800000000),
        f.get("min_lat_e7", -850511287),
        f.get("max_lon_e7", 1800000000),
        f.get("max_lat_e7", 850511287),
        f.get("center_zoom", 0),
        f.get("center_lon_e7", 0),
        f.get("center_lat_e7", 0),
    )


def _first_tile_id(node) -> int:
    first = node[0]
    return first.tile_id if isinstance(first, Entry) else _first_tile_id(first)


def _tile_entries(node) -> List[Entry]:
    out: List[Entry] = []
    for item in node:
        if isinstance(item, Entry):
            out.append(item)
        else:
            out.extend(_tile_entries(item))
    return out


def _serialize(node, leaf_area: bytearray, compression: Compression) -> bytes:
    entries: List[Entry] = []
    for item in node:
        if isinstance(item, Entry):
            entries.append(item)
        else:
            child = _serialize(item, leaf_area, compression)
            offset = len(leaf_area)
            leaf_area += child
            entries.append(Entry(_first_tile_id(item), offset, len(child), 0))
    return encode_entries(entries, compression)


def assemble_raw(root: bytes, leaves: bytes = b"", tile_data: bytes = b"", **header) -> bytes:
    """Header + root + leaf area + tile data, with layout fields filled in."""
    root_offset = HEADER_LENGTH
    leaf_offset = root_offset + len(root)
    data_offset = leaf_offset + len(leaves)
    fields = dict(
        root_offset=root_offset,
        root_length=len(root),
        leaf_directory_offset=leaf_offset,
        leaf_directory_length=len(leaves),
        tile_data_offset=data_offset,
        tile_data_length=len(tile_data),
    )
    fields.update(header)
    return encode_header(**fields) + root + leaves + tile_data


def build_archive(tree, tile_data: Optional[bytes] = None, compression: Compression = Compression.NONE, **header) -> bytes:
    """
    Build a consistent archive from a tree; any header field can be overridden
    to make it inconsistent on purpose.
    """
    leaf_area = bytearray()
    root = _serialize(tree, leaf_area, compression)
    tiles = _tile_entries(tree)
    if tile_data is None:
        end = max((e.offset + e.length for e in tiles), default=0)
        tile_data = bytes(i % 251 for i in range(end))
    ids = [e.tile_id for e in tiles]
    min_zoom = tileid_zoom(min(ids)) if ids else 0
    max_zoom = tileid_zoom(max(ids)) if ids else 0
    fields = dict(
        internal_compression=compression,
        addressed_tiles_count=sum(e.run_length for e in tiles),
        tile_entries_count=len(tiles),
        tile_contents_count=len({e.offset for e in tiles}),
        min_zoom=min_zoom,
        max_zoom=max_zoom,
        center_zoom=min_zoom,
    )
    fields.update(header)
    return assemble_raw(root, bytes(leaf_area), tile_data, **fields)


def clustered_entries(count: int, start_id: int = 0, length: int = 10, run_length: int = 1) -> List[Entry]:
    """Consecutive tile pointers laid out back to back in the data section."""
    return [Entry(start_id + i * run_length, i * length, length, run_length) for i in range(count)]


class MemoryBucket(Bucket):
    """In-memory bucket that records every read and whether it was closed."""

    def __init__(self, objects: Dict[str, bytes], fail_on_read: Optional[int] = None):
        self.objects = objects
        self.reads: List[tuple] = []
        self.closed = False
        self.fail_on_read = fail_on_read

    def _read(self, key: str, offset: int, length: int) -> bytes:
        self.reads.append((key, offset, length))
        if self.fail_on_read is not None and len(self.reads) >= self.fail_on_read:
            raise FetchError("injected failure", key=key, offset=offset, length=length)
        if key not in self.objects:
            raise FetchError("no such key", key=key, offset=offset, length=length, status=404)
        return self.objects[key][offset:offset + length]

    def close(self) -> None:
        self.closed = True
