"""Object-store layer for rangelines - serves byte-inclusive ranges to the readers."""

from pathlib import Path
from urllib.parse import unquote, urlparse

# Re-export these for import convenience
from .base import ObjectStore, AsyncObjectStore, ByteStream, AsyncByteStream, RangeNotSupportedError
from .local import LocalObjectStore, LocalAsyncObjectStore, open_local_store, open_local_store_async
from .http_sync import HTTPObjectStore, open_http_store
from .http_async import HTTPAsyncObjectStore, open_http_store_async, close_global_client
from ..core.model import ConfigurationError


def parse_location(uri):
    """Split a location into (kind, base, bucket, key).

    ``s3://bucket/key``           -> ("s3", None, "bucket", "key")
    ``https://host/bucket/key``   -> ("http", "https://host", "bucket", "key")
    ``/data/bucket/key``          -> ("local", "/data", "bucket", "key")
    """
    source_str = str(uri)
    parsed = urlparse(source_str)

    if parsed.scheme == "s3":
        bucket, key = parsed.netloc, parsed.path.lstrip("/")
        if not bucket or not key:
            raise ConfigurationError(f"Expected s3://bucket/key, got {source_str!r}")
        return "s3", None, bucket, key

    if parsed.scheme in ("http", "https"):
        parts = parsed.path.lstrip("/").split("/", 1)
        if not parts[-1]:
            raise ConfigurationError(f"No object path in URL {source_str!r}")
        bucket, key = (unquote(parts[0]), unquote(parts[1])) if len(parts) == 2 else ("", unquote(parts[0]))
        return "http", f"{parsed.scheme}://{parsed.netloc}", bucket, key

    path = Path(source_str).resolve()
    return "local", str(path.parent.parent), path.parent.name, path.name


def open_store(uri, **kwargs):
    """Factory function returning (store, bucket, key) for a location.

    Extra keyword arguments go to the store: boto3 client options for S3,
    `timeout` for HTTP.
    """
    kind, base, bucket, key = parse_location(uri)
    if kind == "s3":
        # boto3 is only imported when S3 is actually used
        from .s3 import open_s3_store
        return open_s3_store(**kwargs), bucket, key
    if kind == "http":
        return open_http_store(base, **kwargs), bucket, key
    return open_local_store(base), bucket, key


async def open_store_async(uri, **kwargs):
    """Factory function returning (async store, bucket, key) for a location."""
    kind, base, bucket, key = parse_location(uri)
    if kind == "s3":
        raise ConfigurationError("S3 locations are only supported by the synchronous reader")
    if kind == "http":
        return await open_http_store_async(base, **kwargs), bucket, key
    return await open_local_store_async(base), bucket, key


__all__ = [
    "ObjectStore", "AsyncObjectStore", "ByteStream", "AsyncByteStream", "RangeNotSupportedError",
    "LocalObjectStore", "LocalAsyncObjectStore", "HTTPObjectStore", "HTTPAsyncObjectStore",
    "parse_location", "open_store", "open_store_async", "close_global_client",
]
