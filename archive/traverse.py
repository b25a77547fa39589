from __future__ import annotations

from typing import Callable, Iterator, List, Optional, Protocol, Set, Tuple

from common.errors import DecodeError, OperationCancelled
from common.logging_setup import get_logger
from storage.base import Bucket

from .directory import Entry, decode_directory
from .header import Header


log = get_logger(__name__)


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


def check_cancel(cancel: Optional[CancelSignal], what: str) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelled(f"cancelled before {what}")


class DirectoryWalker:
    """
    Resolves the full directory tree of one archive.

    The walk keeps an explicit stack of entry iterators instead of recursing,
    so tree height never touches the Python call stack. Visit order is the
    same as the recursive definition: entries in stored order, each leaf
    pointer expanded in place before its next sibling.
    """

    def __init__(self, bucket: Bucket, key: str, header: Header, cancel: Optional[CancelSignal] = None):
        self.bucket = bucket
        self.key = key
        self.header = header
        self.cancel = cancel
        self.directories_read = 0

    def read_directory(self, offset: int, length: int) -> List[Entry]:
        """One range read + decode. I/O and decode errors propagate."""
        check_cancel(self.cancel, f"directory read at {offset}")
        raw = self.bucket.read_range(self.key, offset, length)
        self.directories_read += 1
        entries = decode_directory(raw, self.header.internal_compression)
        log.debug("directory offset=%d length=%d entries=%d", offset, length, len(entries))
        return entries

    def walk(self, visit: Callable[[Entry], None]) -> int:
        """
        Call `visit` for every tile-pointer entry reachable from the root.
        Returns the number of directory nodes read.
        """
        h = self.header
        seen: Set[Tuple[int, int]] = set()
        start = self.directories_read

        def open_node(offset: int, length: int) -> Iterator[Entry]:
            node = (offset, length)
            if node in seen:
                raise DecodeError(f"directory cycle: node at {offset}+{length} reached twice")
            seen.add(node)
            return iter(self.read_directory(offset, length))

        stack: List[Iterator[Entry]] = [open_node(h.root_offset, h.root_length)]
        while stack:
            entry = next(stack[-1], None)
            if entry is None:
                stack.pop()
                continue
            if entry.run_length > 0:
                visit(entry)
            else:
                stack.append(open_node(h.leaf_directory_offset + entry.offset, entry.length))
        return self.directories_read - start


def collect_entries(bucket: Bucket, key: str, header: Header, cancel: Optional[CancelSignal] = None) -> List[Entry]:
    """All tile-pointer entries of an archive, in visit order."""
    out: List[Entry] = []
    DirectoryWalker(bucket, key, header, cancel).walk(out.append)
    return out
