"""Shared fixtures: in-memory object stores that record every request."""

import pytest

from rangelines.core.model import ObjectAccessError


class TrackedStream:
    """ByteStream that remembers whether it was closed."""

    def __init__(self, data: bytes, store):
        self._data = data
        self._store = store

    def read(self) -> bytes:
        if self._store.fail_on_read:
            raise OSError("connection reset while reading body")
        return self._data

    def close(self) -> None:
        self._store.closed += 1


class AsyncTrackedStream(TrackedStream):
    async def read(self) -> bytes:
        return TrackedStream.read(self)

    async def aclose(self) -> None:
        self.close()


class MemoryStore:
    """ObjectStore over a bytes value.

    `fail_on` makes the Nth range request (1-based) raise ObjectAccessError.
    """

    def __init__(self, data: bytes, *, size=None, fail_on=None, fail_on_read=False, size_error=None):
        self.data = data
        self.reported_size = len(data) if size is None else size
        self.fail_on = fail_on
        self.fail_on_read = fail_on_read
        self.size_error = size_error
        self.ranges = []
        self.closed = 0
        self.size_calls = 0
        self.bytes_fetched = 0
        self.requests_made = 0

    def size(self, bucket, key):
        self.size_calls += 1
        self.requests_made += 1
        if self.size_error is not None:
            raise self.size_error
        return self.reported_size

    def fetch_range(self, bucket, key, start, end):
        self.requests_made += 1
        self.ranges.append((start, end))
        if self.fail_on is not None and len(self.ranges) == self.fail_on:
            raise ObjectAccessError(f"simulated failure on bytes={start}-{end}")
        data = self.data[start:end + 1]
        self.bytes_fetched += len(data)
        return TrackedStream(data, self)


class AsyncMemoryStore(MemoryStore):
    """AsyncObjectStore over a bytes value."""

    async def size(self, bucket, key):
        return MemoryStore.size(self, bucket, key)

    async def fetch_range(self, bucket, key, start, end):
        stream = MemoryStore.fetch_range(self, bucket, key, start, end)
        return AsyncTrackedStream(stream._data, self)


@pytest.fixture
def memory_store():
    """Factory for synchronous in-memory stores."""
    return MemoryStore


@pytest.fixture
def async_memory_store():
    """Factory for asynchronous in-memory stores."""
    return AsyncMemoryStore


@pytest.fixture
def bucket_root(tmp_path):
    """A local store root holding bucket 'data' with a few objects."""
    bucket = tmp_path / "data"
    bucket.mkdir()
    (bucket / "lines.txt").write_bytes(b"first\nsecond\nthird")
    (bucket / "empty.txt").write_bytes(b"")
    (bucket / "nested").mkdir()
    (bucket / "nested" / "crlf.txt").write_bytes(b"This is the first line\r\nThis is the second line")
    return tmp_path
