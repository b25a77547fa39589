from __future__ import annotations

"""
HTTP(S) range-read backend.

Each read is one GET with `Range: bytes=a-b` (inclusive). 206 is the expected
answer; 200 is also accepted and its body returned as-is, even when a server
ignores the Range header or sends fewer bytes than asked for. That leniency is
intentional: callers that care validate what they decode.

No retries and no caching; redirects follow the requests defaults.
"""

from typing import Optional

import requests

from common.errors import FetchError
from common.logging_setup import get_logger

from .base import Bucket, range_header


log = get_logger(__name__)

_OK_STATUSES = (200, 206)


class HTTPBucket(Bucket):
    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout_s: float = 30.0,
        user_agent: Optional[str] = None,
    ):
        """
        Params:
            base_url: scheme://host/dir, keys are appended as "/{key}"
            session: optional requests.Session for connection reuse (not closed by us)
            timeout_s: per-request timeout handed to requests
        """
        self.base_url = base_url.rstrip("/")
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout_s = timeout_s
        self.user_agent = user_agent

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key.lstrip('/')}"

    def _read(self, key: str, offset: int, length: int) -> bytes:
        url = self.url_for(key)
        headers = {"Range": range_header(offset, length)}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        try:
            r = self.session.get(url, headers=headers, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise FetchError(f"GET {url} failed: {e}", key=key, offset=offset, length=length) from e

        if r.status_code not in _OK_STATUSES:
            raise FetchError(
                f"GET {url} returned HTTP {r.status_code}",
                key=key,
                offset=offset,
                length=length,
                status=r.status_code,
            )
        data = r.content
        if r.status_code == 200:
            log.debug("HTTP 200 for ranged GET %s (asked %d bytes, got %d)", url, length, len(data))
        return data

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __repr__(self) -> str:
        return f"HTTPBucket({self.base_url!r})"
