"""Base protocols and shared types for the object-store layer."""

from typing import Protocol, runtime_checkable

from ..core.model import RangeNotSupportedError  # noqa: F401  (re-exported)


RANGE_FALLBACK_MAX = 10 * 1024 * 1024  # 10 MB


@runtime_checkable
class ByteStream(Protocol):
    """Body of one ranged fetch."""

    def read(self) -> bytes:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class AsyncByteStream(Protocol):
    """Body of one ranged fetch, read asynchronously."""

    async def read(self) -> bytes:
        ...

    async def aclose(self) -> None:
        ...


@runtime_checkable
class ObjectStore(Protocol):
    """Protocol for synchronous object stores."""

    bytes_fetched: int  # running total
    requests_made: int

    def size(self, bucket: str, key: str) -> int:
        """Return the object length in bytes.
        Missing object → ObjectNotFoundError, anything else → ObjectAccessError.
        """
        ...

    def fetch_range(self, bucket: str, key: str, start: int, end: int) -> ByteStream:
        """Return a stream over bytes `start`..`end`, both inclusive.
        A stream that reads empty means there is nothing left.
        """
        ...


@runtime_checkable
class AsyncObjectStore(Protocol):
    """Protocol for asynchronous object stores."""

    bytes_fetched: int  # running total
    requests_made: int

    async def size(self, bucket: str, key: str) -> int:
        ...

    async def fetch_range(self, bucket: str, key: str, start: int, end: int) -> AsyncByteStream:
        ...


class BytesStream:
    """In-memory ByteStream for stores that already hold the bytes."""

    def __init__(self, data: bytes = b""):
        self._data = data

    def read(self) -> bytes:
        data, self._data = self._data, b""
        return data

    def close(self) -> None:
        self._data = b""


class AsyncBytesStream(BytesStream):
    """In-memory AsyncByteStream."""

    async def read(self) -> bytes:
        return BytesStream.read(self)

    async def aclose(self) -> None:
        self.close()
