"""Synchronous HTTP object store using requests."""

import logging
from typing import Dict, Optional, Tuple
from urllib.parse import quote

import requests

from ..core.model import ObjectAccessError, ObjectNotFoundError
from .base import BytesStream, RangeNotSupportedError, RANGE_FALLBACK_MAX

logger = logging.getLogger(__name__)


# Module-level session for connection pooling
_session = None


def _get_session():
    """Get or create the global requests session."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def _check_status(response, what: str, bucket: str, key: str) -> None:
    if response.status_code == 404:
        raise ObjectNotFoundError(f"No such object: {bucket}/{key}")
    if response.status_code >= 400:
        raise ObjectAccessError(f"{what} failed with status {response.status_code}")


class _ResponseBody:
    """ByteStream over a streamed requests response."""

    def __init__(self, response: requests.Response, store: "HTTPObjectStore"):
        self._response = response
        self._store = store

    def read(self) -> bytes:
        try:
            data = self._response.content
        except requests.RequestException as e:
            raise ObjectAccessError(f"Reading range body failed: {e}") from e
        self._store.bytes_fetched += len(data)
        return data

    def close(self) -> None:
        self._response.close()


class HTTPObjectStore:
    """Synchronous HTTP store serving objects at ``{base_url}/{bucket}/{key}``."""

    def __init__(self, base_url: str, *, timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.bytes_fetched = 0
        self.requests_made = 0
        # Full bodies of objects whose server ignored Range, keyed by (bucket, key)
        self._full_content: Dict[Tuple[str, str], bytes] = {}
        self._session = _get_session()

    def url_for(self, bucket: str, key: str) -> str:
        path = "/".join(quote(part) for part in (bucket, key) if part)
        return f"{self.base_url}/{path}"

    def size(self, bucket: str, key: str) -> int:
        """Perform HEAD request and return Content-Length."""
        url = self.url_for(bucket, key)
        self.requests_made += 1
        try:
            response = self._session.head(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise ObjectAccessError(f"HEAD request failed: {e}") from e

        _check_status(response, "HEAD request", bucket, key)
        content_length = response.headers.get("content-length")
        if content_length is None:
            raise ObjectAccessError(f"HEAD response for {url} has no Content-Length")
        return int(content_length)

    def fetch_range(self, bucket: str, key: str, start: int, end: int, retry_count: int = 0):
        """Fetch bytes `start`..`end` inclusive with a Range request."""
        if (bucket, key) in self._full_content:
            return BytesStream(self._full_content[bucket, key][start:end + 1])

        url = self.url_for(bucket, key)
        headers = {"Range": f"bytes={start}-{end}"}
        self.requests_made += 1

        try:
            response = self._session.get(url, headers=headers, timeout=self.timeout, stream=True)
        except requests.RequestException as e:
            if retry_count == 0:
                # One automatic retry
                logger.debug("Retrying %s bytes=%d-%d after %s", url, start, end, e)
                return self.fetch_range(bucket, key, start, end, retry_count + 1)
            raise ObjectAccessError(f"Range request failed: {e}") from e

        if response.status_code == 206:
            # Partial content - what we want
            return _ResponseBody(response, self)

        if response.status_code == 416:
            # Range starts past the end of the object
            response.close()
            return BytesStream(b"")

        if response.status_code == 200:
            # Server doesn't support ranges, got full content
            return self._slice_full_response(response, bucket, key, start, end)

        response.close()
        _check_status(response, "Range request", bucket, key)
        raise ObjectAccessError(f"Range request failed with status {response.status_code}")

    def _slice_full_response(
        self, response: requests.Response, bucket: str, key: str, start: int, end: int
    ) -> BytesStream:
        content_length: Optional[int] = None
        if response.headers.get("content-length"):
            content_length = int(response.headers["content-length"])
        if content_length is None or content_length >= RANGE_FALLBACK_MAX:
            response.close()
            raise RangeNotSupportedError("Server doesn't support ranges and object is too large")

        # Treat as full GET for small objects
        try:
            data = response.content
        except requests.RequestException as e:
            raise ObjectAccessError(f"GET request failed: {e}") from e
        finally:
            response.close()
        self._full_content[bucket, key] = data
        self.bytes_fetched += len(data)
        return BytesStream(data[start:end + 1])

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Session is shared, don't close it here
        pass


def open_http_store(base_url: str, **kwargs) -> HTTPObjectStore:
    """Create a synchronous HTTP object store."""
    return HTTPObjectStore(base_url, **kwargs)
