from __future__ import annotations

from typing import Optional


class Bucket:
    """
    Range-read capability shared by all backends.

    Subclasses implement `_read(key, offset, length)`; `read_range` handles the
    argument checks and the zero-length case so every backend behaves the same.
    Buckets are scoped resources: use `with open_bucket(...) as b:` or call close().
    """

    def read_range(self, key: str, offset: int, length: int) -> bytes:
        if offset < 0 or length < 0:
            raise ValueError(f"invalid range offset={offset} length={length}")
        if length == 0:
            return b""
        return self._read(key, int(offset), int(length))

    def _read(self, key: str, offset: int, length: int) -> bytes:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> "Bucket":
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        self.close()
        return None


def join_key(prefix: str, key: str) -> str:
    """Apply a logical subtree prefix to a key ("" / "/" / "." mean none)."""
    p = (prefix or "").strip("/")
    if p in ("", "."):
        return key.lstrip("/")
    return f"{p}/{key.lstrip('/')}"


def range_header(offset: int, length: int) -> str:
    """Inclusive HTTP byte range for `length` bytes at `offset`."""
    return f"bytes={offset}-{offset + length - 1}"
