"""Record readers that walk a remote object in byte-inclusive ranges."""

from __future__ import annotations
import codecs
import logging
from contextlib import aclosing, closing
from typing import AsyncGenerator, AsyncIterator, Generator, Iterator, Optional

from .config import ReaderConfig, check_delimiter, DEFAULT_CHUNK_SIZE, DEFAULT_DELIMITER, DEFAULT_ENCODING
from .model import ConfigurationError, ObjectAccessError
from .scan import RecordSplitter

logger = logging.getLogger(__name__)


class _RangedReaderBase:
    """State shared by the sync and async readers."""

    def __init__(
        self,
        store,
        bucket: str,
        key: str,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        delimiter: str = DEFAULT_DELIMITER,
        encoding: str = DEFAULT_ENCODING,
        errors: str = "strict",
        config: Optional[ReaderConfig] = None,
    ):
        if config is None:
            config = ReaderConfig(chunk_size=chunk_size, delimiter=delimiter, encoding=encoding, errors=errors)
        self.config = config.validate()
        self.store = store
        self.bucket = bucket
        self.key = key

        self.total_size: Optional[int] = None
        self.cursor = 0
        self.remainder: Optional[str] = None
        self.bytes_fetched = 0
        self.requests_made = 0

        self._splitter: Optional[RecordSplitter] = None
        self._records = None
        self._remainder_sent = False

    @property
    def chunk_size(self) -> int:
        return self.config.chunk_size

    @property
    def delimiter(self) -> str:
        """Delimiter of the active pass, or the configured one before it starts."""
        if self._splitter is not None:
            return self._splitter.delimiter
        return self.config.delimiter

    @property
    def carry(self) -> str:
        return self._splitter.carry if self._splitter is not None else ""

    def _attach(self, delimiter: Optional[str], factory):
        # One pass per reader: later calls share the first sequence.
        if self._records is None:
            active = check_delimiter(delimiter) if delimiter is not None else self.config.delimiter
            self._splitter = RecordSplitter(active)
            self._records = factory()
        elif delimiter is not None and delimiter != self._splitter.delimiter:
            raise ConfigurationError(
                f"Records of {self.bucket}/{self.key} are already split on {self._splitter.delimiter!r}; "
                f"create a new reader to split on {delimiter!r}"
            )
        return self._records

    def _next_range(self) -> tuple[int, int]:
        # Range is inclusive on both ends, so the next one starts at end + 1.
        end = min(self.cursor + self.config.chunk_size, self.total_size)
        return self.cursor, end

    def _advance(self, end: int, data: bytes) -> None:
        self.cursor = min(end + 1, self.total_size)
        self.bytes_fetched += len(data)

    def _set_size(self, size: Optional[int]) -> int:
        self.total_size = size or 0
        logger.debug("%s/%s is %d bytes", self.bucket, self.key, self.total_size)
        return self.total_size

    def _take_remainder(self) -> Optional[str]:
        # The trailing remainder is handed out as a line at most once
        if self.remainder is None or self._remainder_sent:
            return None
        self._remainder_sent = True
        return self.remainder

    def _abort(self, exc: Exception) -> None:
        logger.warning("Reading %s/%s stopped at byte %d: %s", self.bucket, self.key, self.cursor, exc)
        if self._splitter is not None:
            self._splitter.finish()

    def _wrap_error(self, what: str, exc: OSError) -> ObjectAccessError:
        return ObjectAccessError(f"{what} of {self.bucket}/{self.key} failed: {exc}")

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(bucket={self.bucket!r}, key={self.key!r}, "
                f"cursor={self.cursor}, total_size={self.total_size})")


class RangedRecordReader(_RangedReaderBase):
    """Yield the records of one remote object, fetching it a chunk at a time.

    ``records()`` is a generator of every delimiter-terminated record whose
    return value is the trailing text after the last delimiter (possibly
    empty). That trailing text is the object's last record; plain ``for``
    loops never see a generator's return value, so use ``lines()`` (or iterate
    the reader) to get it as the final item::

        reader = RangedRecordReader(store, "my-bucket", "my-object")
        for line in reader:
            print(line)

    The sequence is single pass: every call to ``records()`` or ``lines()``
    continues the same progression. Start over with a new reader.
    """

    def records(self, delimiter: Optional[str] = None) -> Generator[str, None, str]:
        return self._attach(delimiter, self._generate)

    def lines(self, delimiter: Optional[str] = None) -> Iterator[str]:
        """Yield every record, then the trailing remainder as the last line."""
        return self._lines(self.records(delimiter))

    def _lines(self, records) -> Iterator[str]:
        yield from records
        remainder = self._take_remainder()
        if remainder is not None:
            yield remainder

    def __iter__(self) -> Iterator[str]:
        return self.lines()

    def _resolve_size(self) -> int:
        self.requests_made += 1
        try:
            size = self.store.size(self.bucket, self.key)
        except ObjectAccessError:
            raise
        except OSError as e:
            raise self._wrap_error("Size lookup", e) from e
        return self._set_size(size)

    def _fetch(self, start: int, end: int) -> bytes:
        self.requests_made += 1
        logger.debug("Fetching bytes=%d-%d of %s/%s", start, end, self.bucket, self.key)
        try:
            with closing(self.store.fetch_range(self.bucket, self.key, start, end)) as body:
                return body.read()
        except ObjectAccessError:
            raise
        except OSError as e:
            raise self._wrap_error(f"Range {start}-{end}", e) from e

    def _generate(self) -> Generator[str, None, str]:
        splitter = self._splitter
        decoder = codecs.getincrementaldecoder(self.config.encoding)(errors=self.config.errors)
        try:
            total_size = self._resolve_size()
            while self.cursor < total_size:
                start, end = self._next_range()
                data = self._fetch(start, end)
                self._advance(end, data)
                if not data:
                    logger.debug("Empty range at byte %d, treating as end of object", start)
                    break
                yield from splitter.feed(decoder.decode(data))
            yield from splitter.feed(decoder.decode(b"", final=True))
        except (ObjectAccessError, UnicodeDecodeError) as e:
            self._abort(e)
            raise
        self.remainder = splitter.finish()
        return self.remainder


class AsyncRangedRecordReader(_RangedReaderBase):
    """Async counterpart of :class:`RangedRecordReader` for an AsyncObjectStore.

    Async generators cannot return a value, so ``records()`` yields the
    delimiter-terminated records and leaves the trailing remainder in
    ``reader.remainder`` once it finishes. ``lines()`` and ``async for`` over
    the reader yield the remainder as the final line.
    """

    def records(self, delimiter: Optional[str] = None) -> AsyncGenerator[str, None]:
        return self._attach(delimiter, self._generate)

    def lines(self, delimiter: Optional[str] = None) -> AsyncIterator[str]:
        """Yield every record, then the trailing remainder as the last line."""
        return self._lines(self.records(delimiter))

    async def _lines(self, records) -> AsyncIterator[str]:
        async for record in records:
            yield record
        remainder = self._take_remainder()
        if remainder is not None:
            yield remainder

    def __aiter__(self) -> AsyncIterator[str]:
        return self.lines()

    async def _resolve_size(self) -> int:
        self.requests_made += 1
        try:
            size = await self.store.size(self.bucket, self.key)
        except ObjectAccessError:
            raise
        except OSError as e:
            raise self._wrap_error("Size lookup", e) from e
        return self._set_size(size)

    async def _fetch(self, start: int, end: int) -> bytes:
        self.requests_made += 1
        logger.debug("Fetching bytes=%d-%d of %s/%s", start, end, self.bucket, self.key)
        try:
            body = await self.store.fetch_range(self.bucket, self.key, start, end)
            async with aclosing(body):
                return await body.read()
        except ObjectAccessError:
            raise
        except OSError as e:
            raise self._wrap_error(f"Range {start}-{end}", e) from e

    async def _generate(self) -> AsyncGenerator[str, None]:
        splitter = self._splitter
        decoder = codecs.getincrementaldecoder(self.config.encoding)(errors=self.config.errors)
        try:
            total_size = await self._resolve_size()
            while self.cursor < total_size:
                start, end = self._next_range()
                data = await self._fetch(start, end)
                self._advance(end, data)
                if not data:
                    logger.debug("Empty range at byte %d, treating as end of object", start)
                    break
                for record in splitter.feed(decoder.decode(data)):
                    yield record
            for record in splitter.feed(decoder.decode(b"", final=True)):
                yield record
        except (ObjectAccessError, UnicodeDecodeError) as e:
            self._abort(e)
            raise
        self.remainder = splitter.finish()
