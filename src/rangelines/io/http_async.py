"""Asynchronous HTTP object store using httpx."""

import logging
from typing import Dict, Optional, Tuple
from urllib.parse import quote

import httpx

from ..core.model import ObjectAccessError, ObjectNotFoundError
from .base import AsyncBytesStream, RangeNotSupportedError, RANGE_FALLBACK_MAX

logger = logging.getLogger(__name__)


# Global async client
_client: Optional[httpx.AsyncClient] = None


def _get_client() -> httpx.AsyncClient:
    """Get or create the global httpx AsyncClient."""
    global _client
    if _client is None:
        _client = httpx.AsyncClient(timeout=60.0)
    return _client


def _check_status(response: httpx.Response, what: str, bucket: str, key: str) -> None:
    if response.status_code == 404:
        raise ObjectNotFoundError(f"No such object: {bucket}/{key}")
    if response.status_code >= 400:
        raise ObjectAccessError(f"{what} failed with status {response.status_code}")


class _ResponseBody:
    """AsyncByteStream over a streamed httpx response."""

    def __init__(self, response: httpx.Response, store: "HTTPAsyncObjectStore"):
        self._response = response
        self._store = store

    async def read(self) -> bytes:
        try:
            data = await self._response.aread()
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise ObjectAccessError(f"Reading range body failed: {e}") from e
        self._store.bytes_fetched += len(data)
        return data

    async def aclose(self) -> None:
        await self._response.aclose()


class HTTPAsyncObjectStore:
    """Asynchronous HTTP store serving objects at ``{base_url}/{bucket}/{key}``.

    Uses the shared module client unless `client` is given; a given client
    stays owned by the caller.
    """

    def __init__(self, base_url: str, *, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.bytes_fetched = 0
        self.requests_made = 0
        # Full bodies of objects whose server ignored Range, keyed by (bucket, key)
        self._full_content: Dict[Tuple[str, str], bytes] = {}
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client if self._client is not None else _get_client()

    def url_for(self, bucket: str, key: str) -> str:
        path = "/".join(quote(part) for part in (bucket, key) if part)
        return f"{self.base_url}/{path}"

    async def size(self, bucket: str, key: str) -> int:
        """Perform HEAD request and return Content-Length."""
        url = self.url_for(bucket, key)
        self.requests_made += 1
        try:
            response = await self.client.head(url, follow_redirects=True)
        except httpx.RequestError as e:
            raise ObjectAccessError(f"HEAD request failed: {e}") from e

        _check_status(response, "HEAD request", bucket, key)
        content_length = response.headers.get("content-length")
        if content_length is None:
            raise ObjectAccessError(f"HEAD response for {url} has no Content-Length")
        return int(content_length)

    async def fetch_range(self, bucket: str, key: str, start: int, end: int, retry_count: int = 0):
        """Fetch bytes `start`..`end` inclusive with a Range request."""
        if (bucket, key) in self._full_content:
            return AsyncBytesStream(self._full_content[bucket, key][start:end + 1])

        url = self.url_for(bucket, key)
        request = self.client.build_request("GET", url, headers={"Range": f"bytes={start}-{end}"})
        self.requests_made += 1

        try:
            response = await self.client.send(request, stream=True)
        except httpx.RequestError as e:
            if retry_count == 0:
                # One automatic retry
                logger.debug("Retrying %s bytes=%d-%d after %s", url, start, end, e)
                return await self.fetch_range(bucket, key, start, end, retry_count + 1)
            raise ObjectAccessError(f"Range request failed: {e}") from e

        if response.status_code == 206:
            # Partial content - what we want
            return _ResponseBody(response, self)

        if response.status_code == 416:
            # Range starts past the end of the object
            await response.aclose()
            return AsyncBytesStream(b"")

        if response.status_code == 200:
            # Server doesn't support ranges, got full content
            return await self._slice_full_response(response, bucket, key, start, end)

        await response.aclose()
        _check_status(response, "Range request", bucket, key)
        raise ObjectAccessError(f"Range request failed with status {response.status_code}")

    async def _slice_full_response(
        self, response: httpx.Response, bucket: str, key: str, start: int, end: int
    ) -> AsyncBytesStream:
        content_length = response.headers.get("content-length")
        if content_length is None or int(content_length) >= RANGE_FALLBACK_MAX:
            await response.aclose()
            raise RangeNotSupportedError("Server doesn't support ranges and object is too large")

        # Treat as full GET for small objects
        try:
            data = await response.aread()
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise ObjectAccessError(f"GET request failed: {e}") from e
        finally:
            await response.aclose()
        self._full_content[bucket, key] = data
        self.bytes_fetched += len(data)
        return AsyncBytesStream(data[start:end + 1])

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        # Client is shared or caller-owned, don't close it here
        pass


async def open_http_store_async(base_url: str, **kwargs) -> HTTPAsyncObjectStore:
    """Create an asynchronous HTTP object store."""
    return HTTPAsyncObjectStore(base_url, **kwargs)


async def close_global_client():
    """Close the global httpx client. Call this at application shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
