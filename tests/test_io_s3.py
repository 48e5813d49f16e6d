"""Tests for the S3 store, using botocore's Stubber."""

import io

import boto3
import pytest
from botocore.exceptions import IncompleteReadError
from botocore.response import StreamingBody
from botocore.stub import Stubber

from rangelines.core.model import ObjectAccessError, ObjectNotFoundError
from rangelines.core.reader import RangedRecordReader
from rangelines.io.s3 import S3ObjectStore


DATA = b"This is the first line\r\nThis is the second line"


def _body(data: bytes) -> StreamingBody:
    return StreamingBody(io.BytesIO(data), len(data))


class _BrokenBody:
    def read(self, *args):
        raise IncompleteReadError(actual_bytes=1, expected_bytes=5)

    def close(self):
        pass


class TestS3ObjectStore:
    """Test the boto3 backed store."""

    @pytest.fixture
    def client(self):
        return boto3.client(
            "s3",
            region_name="us-east-1",
            aws_access_key_id="testing",
            aws_secret_access_key="testing",
        )

    @pytest.fixture
    def stubber(self, client):
        with Stubber(client) as stub:
            yield stub
            stub.assert_no_pending_responses()

    def test_size(self, client, stubber):
        stubber.add_response("head_object", {"ContentLength": 47}, {"Bucket": "b", "Key": "k"})
        store = S3ObjectStore(client=client)
        assert store.size("b", "k") == 47
        assert store.requests_made == 1

    def test_size_not_found(self, client, stubber):
        stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)
        with pytest.raises(ObjectNotFoundError):
            S3ObjectStore(client=client).size("b", "k")

    def test_size_access_denied(self, client, stubber):
        stubber.add_client_error("head_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(ObjectAccessError, match="head_object"):
            S3ObjectStore(client=client).size("b", "k")

    def test_fetch_range_sends_inclusive_range(self, client, stubber):
        stubber.add_response(
            "get_object",
            {"Body": _body(DATA[0:23])},
            {"Bucket": "b", "Key": "k", "Range": "bytes=0-22"},
        )
        store = S3ObjectStore(client=client)
        body = store.fetch_range("b", "k", 0, 22)
        assert body.read() == DATA[0:23]
        body.close()
        assert store.bytes_fetched == 23

    def test_invalid_range_is_empty(self, client, stubber):
        stubber.add_client_error("get_object", service_error_code="InvalidRange", http_status_code=416)
        assert S3ObjectStore(client=client).fetch_range("b", "k", 100, 200).read() == b""

    def test_fetch_missing_key(self, client, stubber):
        stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)
        with pytest.raises(ObjectNotFoundError):
            S3ObjectStore(client=client).fetch_range("b", "k", 0, 1)

    def test_body_read_failure(self, client, stubber):
        stubber.add_response("get_object", {"Body": _BrokenBody()}, {"Bucket": "b", "Key": "k", "Range": "bytes=0-4"})
        body = S3ObjectStore(client=client).fetch_range("b", "k", 0, 4)
        with pytest.raises(ObjectAccessError, match="Reading S3 body"):
            body.read()

    def test_reader_over_s3(self, client, stubber):
        stubber.add_response("head_object", {"ContentLength": len(DATA)}, {"Bucket": "b", "Key": "k"})
        for start, end in [(0, 22), (23, 45), (46, 47)]:
            stubber.add_response(
                "get_object",
                {"Body": _body(DATA[start:end + 1])},
                {"Bucket": "b", "Key": "k", "Range": f"bytes={start}-{end}"},
            )

        reader = RangedRecordReader(S3ObjectStore(client=client), "b", "k", chunk_size=22)
        records = reader.records("\r\n")
        assert next(records) == "This is the first line"
        with pytest.raises(StopIteration) as stop:
            next(records)
        assert stop.value.value == "This is the second line"

    def test_reader_aborts_on_failure(self, client, stubber):
        stubber.add_response("head_object", {"ContentLength": len(DATA)}, {"Bucket": "b", "Key": "k"})
        stubber.add_response("get_object", {"Body": _body(DATA[0:23])}, {"Bucket": "b", "Key": "k", "Range": "bytes=0-22"})
        stubber.add_client_error("get_object", service_error_code="AccessDenied", http_status_code=403)

        reader = RangedRecordReader(S3ObjectStore(client=client), "b", "k", chunk_size=22, delimiter="\r\n")
        with pytest.raises(ObjectAccessError):
            list(reader)
        assert reader.remainder is None
