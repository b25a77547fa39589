"""
Archive — read-side model of the single-file tile archive

- header: fixed 127-byte header (decode_header, Compression, TileType)
- directory: directory nodes (decode_directory, decode_entries, find_tile, Entry)
- tileid: zoom-banded Hilbert tile ids (zxy_to_tileid, tileid_to_zxy)
- traverse: DirectoryWalker, resolving the whole leaf-directory tree
- reader: ArchiveReader, header + single-tile lookup over any storage bucket
"""
from .directory import Entry, decode_directory, decode_entries, find_tile
from .header import HEADER_LENGTH, Compression, Header, TileType, decode_header
from .reader import ArchiveReader
from .tileid import MAX_ZOOM, tileid_to_zxy, tileid_zoom, zxy_to_tileid
from .traverse import DirectoryWalker, collect_entries

__all__ = [
    "ArchiveReader",
    "Compression",
    "DirectoryWalker",
    "Entry",
    "HEADER_LENGTH",
    "Header",
    "MAX_ZOOM",
    "TileType",
    "collect_entries",
    "decode_directory",
    "decode_entries",
    "decode_header",
    "find_tile",
    "tileid_to_zxy",
    "tileid_zoom",
    "zxy_to_tileid",
]
