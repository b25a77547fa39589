from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from common.errors import FetchError
from common.logging_setup import get_logger

from .base import Bucket, join_key, range_header


log = get_logger(__name__)


class S3Bucket(Bucket):
    """
    S3-compatible object storage (AWS, MinIO, R2, ...) via boto3 GetObject with a Range.

    Credentials follow the usual boto3 chain; `endpoint_url` targets non-AWS stores.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        client: Optional[Any] = None,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ):
        self.bucket = bucket
        self.prefix = prefix
        self.client = client or boto3.client("s3", region_name=region, endpoint_url=endpoint_url)

    def _read(self, key: str, offset: int, length: int) -> bytes:
        full_key = join_key(self.prefix, key)
        try:
            resp = self.client.get_object(Bucket=self.bucket, Key=full_key, Range=range_header(offset, length))
            body = resp["Body"]
            try:
                data = body.read()
            finally:
                body.close()
        except ClientError as e:
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            raise FetchError(
                f"s3://{self.bucket}/{full_key}: {e}",
                key=key,
                offset=offset,
                length=length,
                status=status,
            ) from e
        except BotoCoreError as e:
            raise FetchError(f"s3://{self.bucket}/{full_key}: {e}", key=key, offset=offset, length=length) from e
        log.debug("s3 read s3://%s/%s offset=%d length=%d", self.bucket, full_key, offset, length)
        return data

    def __repr__(self) -> str:
        return f"S3Bucket({self.bucket!r}, prefix={self.prefix!r})"
