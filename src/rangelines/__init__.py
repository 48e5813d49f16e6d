"""rangelines - read delimiter-separated records from remote objects, one byte range at a time."""

from .core.model import ObjectAccessError, ObjectNotFoundError, RangeNotSupportedError, ConfigurationError  # re-export
from .core.config import ReaderConfig, DEFAULT_CHUNK_SIZE, DEFAULT_DELIMITER
from .core.reader import RangedRecordReader, AsyncRangedRecordReader
from .io import open_store, open_store_async


def read_records(uri, *, chunk_size: int = DEFAULT_CHUNK_SIZE, delimiter: str = DEFAULT_DELIMITER,
                 encoding: str = "utf-8", **store_options) -> RangedRecordReader:
    """Create a reader over a local path, http(s) URL or s3:// location."""
    # Validate before touching the store
    config = ReaderConfig(chunk_size=chunk_size, delimiter=delimiter, encoding=encoding).validate()
    store, bucket, key = open_store(uri, **store_options)
    return RangedRecordReader(store, bucket, key, config=config)


async def read_records_async(uri, *, chunk_size: int = DEFAULT_CHUNK_SIZE, delimiter: str = DEFAULT_DELIMITER,
                             encoding: str = "utf-8", **store_options) -> AsyncRangedRecordReader:
    """Create an async reader over a local path or http(s) URL."""
    config = ReaderConfig(chunk_size=chunk_size, delimiter=delimiter, encoding=encoding).validate()
    store, bucket, key = await open_store_async(uri, **store_options)
    return AsyncRangedRecordReader(store, bucket, key, config=config)


__all__ = [
    "read_records", "read_records_async",
    "RangedRecordReader", "AsyncRangedRecordReader", "ReaderConfig",
    "ObjectAccessError", "ObjectNotFoundError", "RangeNotSupportedError", "ConfigurationError",
]
