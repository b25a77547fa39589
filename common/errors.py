from __future__ import annotations

from typing import Optional


class ArchiveError(Exception):
    """Base class for everything raised by the archive tooling."""


class LocationError(ArchiveError, ValueError):
    """A location string could not be resolved into (bucket root, key)."""


class FetchError(ArchiveError, IOError):
    """
    Backend-neutral range-read failure.

    Attributes:
        key, offset, length: the read that failed.
        status: HTTP/S3 status code when the backend reported one, else None.
    """

    def __init__(
        self,
        message: str,
        *,
        key: str = "",
        offset: int = 0,
        length: int = 0,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.key = key
        self.offset = offset
        self.length = length
        self.status = status

    def __str__(self) -> str:
        base = super().__str__()
        where = f"{self.key} [{self.offset}+{self.length}]"
        if self.status is not None:
            return f"{base} (status {self.status}) at {where}"
        return f"{base} at {where}"


class DecodeError(ArchiveError, ValueError):
    """Header or directory bytes are truncated or malformed."""


class TileIdRangeError(ArchiveError, OverflowError):
    """Tile id or zoom beyond the maximum supported zoom."""


class OperationCancelled(ArchiveError):
    """The caller's cancellation signal was set at an I/O boundary."""
