from __future__ import annotations

"""
Directory nodes: decoding and lookup.

Decoded layout (all integers are unsigned LEB128 varints):

    N                       number of entries
    N x tile_id delta       cumulative, first delta is the absolute id
    N x run_length          0 = leaf pointer, >= 1 = tile pointer
    N x length
    N x offset              0 for i > 0 means "right after the previous entry",
                            otherwise the stored value is offset + 1

Gzip nodes go through pmtiles.tile.deserialize_directory; uncompressed nodes
are read with the same library's varint reader. Either way the result is
checked before it leaves this module.
"""

import io
import zlib
from dataclasses import dataclass
from typing import Iterable, List

from pmtiles.tile import Entry as _PMEntry
from pmtiles.tile import deserialize_directory, find_tile, read_varint

from common.errors import DecodeError

from .header import Compression


MAX_UINT64 = (1 << 64) - 1


@dataclass(frozen=True, slots=True)
class Entry:
    tile_id: int
    offset: int
    length: int
    run_length: int

    @property
    def is_leaf(self) -> bool:
        return self.run_length == 0

    @property
    def last_tile_id(self) -> int:
        """Last id answered by a tile pointer (tile_id itself for leaves)."""
        return self.tile_id + max(self.run_length, 1) - 1

    def covers(self, tile_id: int) -> bool:
        return self.run_length > 0 and self.tile_id <= tile_id <= self.last_tile_id


def _checked(raw: Iterable[_PMEntry]) -> List[Entry]:
    out: List[Entry] = []
    for i, e in enumerate(raw):
        # a stored offset of 0 on the first entry decodes to -1
        if e.offset < 0:
            raise DecodeError("first directory entry has no offset")
        if max(e.tile_id, e.offset, e.length, e.run_length) > MAX_UINT64:
            raise DecodeError(f"directory entry {i} has a field wider than 64 bits")
        out.append(Entry(e.tile_id, e.offset, e.length, e.run_length))
    return out


def decode_entries(data: bytes) -> List[Entry]:
    """Decode one uncompressed directory node into entries, in stored order."""
    buf = io.BytesIO(data)
    try:
        n = read_varint(buf)
        # every entry needs at least 4 varint bytes
        if n * 4 > len(data) - buf.tell():
            raise DecodeError(f"directory claims {n} entries in {len(data)} bytes")

        entries: List[_PMEntry] = []
        last = 0
        for _ in range(n):
            last += read_varint(buf)
            entries.append(_PMEntry(last, 0, 0, 0))
        for e in entries:
            e.run_length = read_varint(buf)
        for e in entries:
            e.length = read_varint(buf)
        for i, e in enumerate(entries):
            raw = read_varint(buf)
            if raw == 0 and i > 0:
                e.offset = entries[i - 1].offset + entries[i - 1].length
            else:
                e.offset = raw - 1
    except EOFError as e:
        raise DecodeError(f"directory truncated: {e}") from e
    return _checked(entries)


def decode_directory(data: bytes, compression: Compression) -> List[Entry]:
    """Undo the archive's internal compression for one node and decode it."""
    if compression == Compression.NONE:
        return decode_entries(data)
    if compression == Compression.GZIP:
        try:
            raw = deserialize_directory(data)
        except (OSError, EOFError, zlib.error) as e:
            raise DecodeError(f"corrupt gzip directory: {e}") from e
        return _checked(raw)
    name = compression.name.lower() if isinstance(compression, Compression) else str(compression)
    raise DecodeError(f"unsupported internal compression: {name}")
