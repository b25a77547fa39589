"""
Storage — byte-range reads against a "bucket"

Every consumer sees one capability: read `length` bytes at `offset` of `key`.

- FileBucket: local filesystem directory
- HTTPBucket: plain HTTP(S) with explicit Range headers (requests)
- S3Bucket: S3-compatible object storage (boto3)
- open_bucket / normalize_bucket_key: turn a user location into (bucket, key)

Usage:
    from storage import normalize_bucket_key, open_bucket
    root, key = normalize_bucket_key("", "", "https://example.com/tiles/world.pmtiles")
    with open_bucket(root) as bucket:
        head = bucket.read_range(key, 0, 127)
"""
from .base import Bucket
from .file_bucket import FileBucket
from .http_bucket import HTTPBucket
from .s3_bucket import S3Bucket
from .location import normalize_bucket_key, open_bucket

__all__ = [
    "Bucket",
    "FileBucket",
    "HTTPBucket",
    "S3Bucket",
    "normalize_bucket_key",
    "open_bucket",
]
