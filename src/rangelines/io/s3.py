"""Amazon S3 object store using boto3."""

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.model import ObjectAccessError, ObjectNotFoundError
from .base import BytesStream

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class _StreamingBody:
    """ByteStream over a botocore StreamingBody."""

    def __init__(self, body, store: "S3ObjectStore"):
        self._body = body
        self._store = store

    def read(self) -> bytes:
        try:
            data = self._body.read()
        except (BotoCoreError, OSError) as e:
            raise ObjectAccessError(f"Reading S3 body failed: {e}") from e
        self._store.bytes_fetched += len(data)
        return data

    def close(self) -> None:
        self._body.close()


class S3ObjectStore:
    """Synchronous S3 store.

    ``client_kwargs`` (region_name, endpoint_url, credentials, ...) are passed
    to ``boto3.client("s3", ...)`` unchanged; pass ``client`` to reuse one.
    """

    def __init__(self, client=None, **client_kwargs):
        self._client = client if client is not None else boto3.client("s3", **client_kwargs)
        self.bytes_fetched = 0
        self.requests_made = 0

    @property
    def client(self):
        return self._client

    def size(self, bucket: str, key: str) -> int:
        """Return ContentLength from head_object."""
        self.requests_made += 1
        try:
            head = self._client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(f"No such object: s3://{bucket}/{key}") from e
            raise ObjectAccessError(f"head_object s3://{bucket}/{key} failed: {e}") from e
        except BotoCoreError as e:
            raise ObjectAccessError(f"head_object s3://{bucket}/{key} failed: {e}") from e
        return head.get("ContentLength", 0)

    def fetch_range(self, bucket: str, key: str, start: int, end: int):
        """Return the body of a ranged get_object, bytes `start`..`end` inclusive."""
        self.requests_made += 1
        try:
            result = self._client.get_object(Bucket=bucket, Key=key, Range=f"bytes={start}-{end}")
        except ClientError as e:
            code = _error_code(e)
            if code == "InvalidRange":
                # Range starts past the end of the object
                logger.debug("InvalidRange for s3://%s/%s bytes=%d-%d", bucket, key, start, end)
                return BytesStream(b"")
            if code in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(f"No such object: s3://{bucket}/{key}") from e
            raise ObjectAccessError(f"get_object s3://{bucket}/{key} failed: {e}") from e
        except BotoCoreError as e:
            raise ObjectAccessError(f"get_object s3://{bucket}/{key} failed: {e}") from e

        body = result.get("Body")
        if body is None:
            # Nothing returned, treated as end of object
            return BytesStream(b"")
        return _StreamingBody(body, self)


def open_s3_store(**client_kwargs) -> S3ObjectStore:
    """Create a synchronous S3 object store."""
    return S3ObjectStore(**client_kwargs)
