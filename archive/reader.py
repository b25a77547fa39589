from __future__ import annotations

from typing import Optional

from common.errors import DecodeError
from common.logging_setup import get_logger
from storage.base import Bucket

from .directory import find_tile
from .header import Header, decode_header
from .tileid import zxy_to_tileid
from .traverse import CancelSignal, DirectoryWalker, check_cancel


log = get_logger(__name__)

DEFAULT_HEADER_FETCH = 16384


class ArchiveReader:
    """
    Random access to one archive behind a bucket.

    The header is fetched once, lazily. Tile payloads are returned exactly as
    stored (still tile-compressed); decoding them is the caller's concern.
    """

    def __init__(
        self,
        bucket: Bucket,
        key: str,
        cancel: Optional[CancelSignal] = None,
        header_fetch_length: int = DEFAULT_HEADER_FETCH,
    ):
        self.bucket = bucket
        self.key = key
        self.cancel = cancel
        self.header_fetch_length = header_fetch_length
        self._header: Optional[Header] = None

    @property
    def header(self) -> Header:
        if self._header is None:
            check_cancel(self.cancel, "header read")
            data = self.bucket.read_range(self.key, 0, self.header_fetch_length)
            self._header = decode_header(data)
            log.debug("header %s: root=%d+%d clustered=%s",
                      self.key, self._header.root_offset, self._header.root_length, self._header.clustered)
        return self._header

    def walker(self) -> DirectoryWalker:
        return DirectoryWalker(self.bucket, self.key, self.header, self.cancel)

    def get_tile(self, z: int, x: int, y: int) -> Optional[bytes]:
        """Raw bytes of tile z/x/y, or None if the archive does not address it."""
        tile_id = zxy_to_tileid(z, x, y)
        h = self.header
        walker = self.walker()
        offset, length = h.root_offset, h.root_length
        visited = set()
        while (offset, length) not in visited:
            visited.add((offset, length))
            entry = find_tile(walker.read_directory(offset, length), tile_id)
            if entry is None:
                return None
            if entry.run_length > 0:
                check_cancel(self.cancel, "tile read")
                return self.bucket.read_range(self.key, h.tile_data_offset + entry.offset, entry.length)
            offset, length = h.leaf_directory_offset + entry.offset, entry.length
        raise DecodeError(f"directory cycle while looking up {z}/{x}/{y} at {offset}+{length}")
