from __future__ import annotations

import os
import posixpath
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from common.config import section
from common.errors import LocationError

from .base import Bucket, join_key
from .file_bucket import FileBucket
from .http_bucket import HTTPBucket
from .s3_bucket import S3Bucket


def _split_url(location: str) -> Tuple[str, str]:
    """scheme://host/dir/file?q -> (scheme://host/dir[?q], file)."""
    u = urlparse(location)
    if not u.netloc:
        raise LocationError(f"malformed URL: {location!r}")
    dir_, file_ = posixpath.split(u.path)
    if not file_:
        raise LocationError(f"URL has no file name: {location!r}")
    dir_ = dir_.rstrip("/")
    return f"{u.scheme}://{u.netloc}{dir_}", file_


def normalize_bucket_key(bucket: str, prefix: str, key: str) -> Tuple[str, str]:
    """
    Resolve a user-supplied location into (bucket root, key).

    - explicit `bucket`: returned unchanged, `key` used verbatim
    - "http..." key: (scheme://host/dir, filename); query string dropped
    - "s3://" key: (s3://bucket/dir[?query], filename)
    - bare path with `prefix`: (file://abs(prefix), key)
    - bare path: (file://abs(dirname), basename)
    """
    if bucket:
        return bucket, key
    if not key:
        raise LocationError("empty location")

    if key.startswith("http"):
        return _split_url(key)

    if key.startswith("s3://"):
        u = urlparse(key)
        root, file_ = _split_url(key.split("?", 1)[0])
        if u.query:
            root = f"{root}?{u.query}"
        return root, file_

    if prefix:
        return "file://" + os.path.abspath(prefix).replace(os.sep, "/"), key

    abs_path = os.path.abspath(key)
    base = os.path.basename(abs_path)
    if not base:
        raise LocationError(f"path has no file name: {key!r}")
    return "file://" + os.path.dirname(abs_path).replace(os.sep, "/"), base


def open_bucket(bucket_url: str, prefix: str = "", config: Optional[Dict[str, Any]] = None) -> Bucket:
    """
    Open the backend for a bucket root produced by normalize_bucket_key.

    `prefix` scopes all keys to a subtree (file and s3 only; ignored for http).
    """
    if bucket_url.startswith("http"):
        http_cfg = section(config, "http")
        return HTTPBucket(
            bucket_url,
            timeout_s=float(http_cfg.get("timeout_s", 30.0)),
            user_agent=http_cfg.get("user_agent"),
        )

    if bucket_url.startswith("file://"):
        root = bucket_url[len("file://"):]
        if not root:
            raise LocationError(f"file URL without a path: {bucket_url!r}")
        return FileBucket(root, prefix=prefix)

    if bucket_url.startswith("s3://"):
        u = urlparse(bucket_url)
        if not u.netloc:
            raise LocationError(f"s3 URL without a bucket: {bucket_url!r}")
        q = parse_qs(u.query)
        s3_cfg = section(config, "s3")
        region = q.get("region", [s3_cfg.get("region")])[0]
        endpoint = q.get("endpoint", [s3_cfg.get("endpoint_url")])[0]
        sub = u.path.strip("/")
        full_prefix = join_key(sub, prefix) if prefix and prefix not in ("/", ".") else sub
        return S3Bucket(u.netloc, prefix=full_prefix.strip("/"), region=region, endpoint_url=endpoint)

    raise LocationError(f"unsupported bucket URL: {bucket_url!r}")
