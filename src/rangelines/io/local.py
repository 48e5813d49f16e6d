"""Local filesystem object store using mmap."""

import asyncio
import mmap
from pathlib import Path
from typing import Union

from ..core.model import ObjectAccessError, ObjectNotFoundError
from .base import BytesStream, AsyncBytesStream


class LocalObjectStore:
    """Synchronous store where a bucket is a directory under `root`."""

    def __init__(self, root: Union[Path, str] = "."):
        self.root = Path(root)
        self.bytes_fetched = 0
        self.requests_made = 0

    def path_for(self, bucket: str, key: str) -> Path:
        """Resolve bucket/key to a file, refusing paths outside the bucket."""
        bucket_dir = (self.root / bucket).resolve()
        path = (bucket_dir / key).resolve()
        if not path.is_relative_to(bucket_dir):
            raise ObjectAccessError(f"Key {key!r} escapes bucket {bucket!r}")
        return path

    def size(self, bucket: str, key: str) -> int:
        """Return the total size of the object in bytes."""
        self.requests_made += 1
        path = self.path_for(bucket, key)
        try:
            if not path.is_file():
                raise ObjectNotFoundError(f"No such object: {bucket}/{key}")
            return path.stat().st_size
        except ObjectNotFoundError:
            raise
        except OSError as e:
            raise ObjectAccessError(f"Cannot stat {path}: {e}") from e

    def fetch_range(self, bucket: str, key: str, start: int, end: int) -> BytesStream:
        """Return bytes `start`..`end` inclusive; short or empty past end of file."""
        self.requests_made += 1
        if start < 0 or end < start:
            raise ObjectAccessError(f"Invalid range {start}-{end}")

        path = self.path_for(bucket, key)
        try:
            with open(path, "rb") as f:
                f.seek(0, 2)  # Seek to end
                if f.tell() == 0:
                    # mmap refuses empty files
                    return BytesStream(b"")
                with mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) as mm:
                    data = mm[start:end + 1]
        except FileNotFoundError as e:
            raise ObjectNotFoundError(f"No such object: {bucket}/{key}") from e
        except OSError as e:
            raise ObjectAccessError(f"Cannot read {path}: {e}") from e

        self.bytes_fetched += len(data)
        return BytesStream(data)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass


class LocalAsyncObjectStore:
    """Asynchronous local store - thin wrapper around the sync store."""

    def __init__(self, root: Union[Path, str] = "."):
        self._sync_store = LocalObjectStore(root)

    @property
    def root(self) -> Path:
        return self._sync_store.root

    @property
    def bytes_fetched(self) -> int:
        return self._sync_store.bytes_fetched

    @property
    def requests_made(self) -> int:
        return self._sync_store.requests_made

    async def size(self, bucket: str, key: str) -> int:
        return await asyncio.to_thread(self._sync_store.size, bucket, key)

    async def fetch_range(self, bucket: str, key: str, start: int, end: int) -> AsyncBytesStream:
        stream = await asyncio.to_thread(self._sync_store.fetch_range, bucket, key, start, end)
        return AsyncBytesStream(stream.read())

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass


def open_local_store(root: Union[Path, str] = ".") -> LocalObjectStore:
    """Create a synchronous local object store."""
    return LocalObjectStore(root)


async def open_local_store_async(root: Union[Path, str] = ".") -> LocalAsyncObjectStore:
    """Create an asynchronous local object store."""
    return LocalAsyncObjectStore(root)
