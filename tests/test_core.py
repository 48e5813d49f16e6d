import pytest

from rangelines.core.config import ReaderConfig, parse_delimiter, check_delimiter, DEFAULT_CHUNK_SIZE
from rangelines.core.model import (
    ConfigurationError, ObjectAccessError, ObjectNotFoundError, RangeNotSupportedError,
)
from rangelines.core.scan import RecordSplitter


class TestRecordSplitter:
    """Test the carry-over scan state machine."""

    def test_single_chunk(self):
        splitter = RecordSplitter("\n")
        assert splitter.feed("a\nb\nc") == ["a", "b"]
        assert splitter.carry == "c"
        assert splitter.finish() == "c"
        assert splitter.carry == ""

    def test_carry_completed_by_next_chunk(self):
        splitter = RecordSplitter("\n")
        assert splitter.feed("hel") == []
        assert splitter.feed("lo") == []
        assert splitter.feed(" world\nnext") == ["hello world"]
        assert splitter.carry == "next"

    def test_delimiter_split_between_chunks(self):
        splitter = RecordSplitter("\r\n")
        assert splitter.feed("line\r") == []
        assert splitter.feed("\nrest") == ["line"]
        assert splitter.finish() == "rest"

    def test_delimiter_split_over_many_chunks(self):
        splitter = RecordSplitter("spoons")
        out = []
        for piece in ["ab", "cs", "p", "o", "on", "s1", "23"]:
            out.extend(splitter.feed(piece))
        assert out == ["abc"]
        assert splitter.finish() == "123"

    def test_consecutive_delimiters(self):
        splitter = RecordSplitter("||")
        assert splitter.feed("||||x||") == ["", "", "x"]
        assert splitter.carry == ""

    def test_overlapping_delimiter_characters(self):
        # "aaa" holds one "aa" match, the trailing "a" waits for more input
        splitter = RecordSplitter("aa")
        assert splitter.feed("aaa") == [""]
        assert splitter.feed("a") == [""]
        assert splitter.finish() == ""

    def test_empty_feed(self):
        splitter = RecordSplitter("\n")
        splitter.feed("abc")
        assert splitter.feed("") == []
        assert splitter.carry == "abc"

    def test_rejects_empty_delimiter(self):
        with pytest.raises(ConfigurationError):
            RecordSplitter("")


class TestReaderConfig:
    """Test option validation."""

    def test_defaults(self):
        config = ReaderConfig().validate()
        assert config.chunk_size == DEFAULT_CHUNK_SIZE == 131072
        assert config.delimiter == "\n"
        assert config.encoding == "utf-8"

    @pytest.mark.parametrize("chunk_size", [0, -1, 1.5, "8", None, False])
    def test_bad_chunk_size(self, chunk_size):
        with pytest.raises(ConfigurationError, match="chunk_size"):
            ReaderConfig(chunk_size=chunk_size).validate()

    @pytest.mark.parametrize("delimiter", ["", None, b"\n"])
    def test_bad_delimiter(self, delimiter):
        with pytest.raises(ConfigurationError, match="delimiter"):
            ReaderConfig(delimiter=delimiter).validate()

    def test_unknown_encoding(self):
        with pytest.raises(ConfigurationError, match="encoding"):
            ReaderConfig(encoding="utf-99").validate()

    def test_check_delimiter_passthrough(self):
        assert check_delimiter("spoons") == "spoons"


class TestParseDelimiter:
    """Test command-line delimiter escapes."""

    @pytest.mark.parametrize("text,expected", [
        ("\\n", "\n"),
        ("\\r\\n", "\r\n"),
        ("\\t", "\t"),
        ("\\0", "\0"),
        ("spoons", "spoons"),
        ("¶", "¶"),
        (",\\n", ",\n"),
    ])
    def test_escapes(self, text, expected):
        assert parse_delimiter(text) == expected

    def test_empty(self):
        with pytest.raises(ConfigurationError):
            parse_delimiter("")

    def test_invalid_escape(self):
        with pytest.raises(ConfigurationError, match="Invalid delimiter"):
            parse_delimiter("\\x4")


class TestErrors:
    """Test the error hierarchy."""

    def test_access_errors_are_ioerrors(self):
        assert issubclass(ObjectAccessError, IOError)
        assert issubclass(ObjectNotFoundError, ObjectAccessError)
        assert issubclass(RangeNotSupportedError, ObjectAccessError)

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)
        assert not issubclass(ConfigurationError, ObjectAccessError)
