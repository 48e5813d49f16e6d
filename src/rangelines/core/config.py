from __future__ import annotations
import codecs
from dataclasses import dataclass

from .model import ConfigurationError

DEFAULT_CHUNK_SIZE = 128 * 1024  # bytes requested per range
DEFAULT_DELIMITER = "\n"
DEFAULT_ENCODING = "utf-8"


@dataclass(slots=True)
class ReaderConfig:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    delimiter: str = DEFAULT_DELIMITER
    encoding: str = DEFAULT_ENCODING
    errors: str = "strict"

    def validate(self) -> "ReaderConfig":
        """Raise ConfigurationError on bad options, return self otherwise."""
        # bool is an int subclass, but never a meaningful chunk size
        if isinstance(self.chunk_size, bool) or not isinstance(self.chunk_size, int):
            raise ConfigurationError(f"chunk_size must be an integer, got {self.chunk_size!r}")
        if self.chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {self.chunk_size}")
        check_delimiter(self.delimiter)
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ConfigurationError(f"Unknown encoding: {self.encoding!r}") from None
        return self


def check_delimiter(delimiter) -> str:
    if not isinstance(delimiter, str):
        raise ConfigurationError(f"delimiter must be a string, got {type(delimiter).__name__}")
    if not delimiter:
        raise ConfigurationError("delimiter must not be empty")
    return delimiter


def parse_delimiter(text: str) -> str:
    """Turn a command-line delimiter such as ``\\r\\n`` into the real characters."""
    try:
        delimiter = text.encode("latin-1", "backslashreplace").decode("unicode_escape")
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"Invalid delimiter escape {text!r}: {e}") from None
    return check_delimiter(delimiter)
