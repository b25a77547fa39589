from __future__ import annotations

from pathlib import Path

from common.errors import FetchError
from common.logging_setup import get_logger

from .base import Bucket, join_key


log = get_logger(__name__)


class FileBucket(Bucket):
    """
    Local directory acting as a bucket.

        root_dir/
          └─ [prefix/]
              └─ {key}

    Reads past EOF return what is available; decoders detect truncation.
    """

    def __init__(self, root_dir: str, prefix: str = ""):
        self.root = Path(root_dir)
        self.prefix = prefix

    def path_for(self, key: str) -> Path:
        return self.root / join_key(self.prefix, key)

    def _read(self, key: str, offset: int, length: int) -> bytes:
        path = self.path_for(key)
        try:
            with path.open("rb") as f:
                f.seek(offset)
                data = f.read(length)
        except OSError as e:
            raise FetchError(f"cannot read {path}: {e}", key=key, offset=offset, length=length) from e
        log.debug("file read %s offset=%d length=%d got=%d", path, offset, length, len(data))
        return data

    def __repr__(self) -> str:
        return f"FileBucket({str(self.root)!r}, prefix={self.prefix!r})"
