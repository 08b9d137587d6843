"""Tests for S3 storage transport."""

import io
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from s3store.infra.storage.client import (
    ListResult,
    NotFoundError,
    PreconditionFailedError,
    TransportError,
)
from s3store.infra.storage.s3_client import MAX_DELETE_BATCH, S3Transport


def _client_error(code: str, operation: str = "PutObject", status: int = 400) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class TestS3Transport:
    """Test S3Transport implementation."""

    @pytest.fixture
    def mock_s3(self):
        """Mock boto3 S3 client."""
        mock_client = MagicMock()
        with patch.object(S3Transport, "_build_client", return_value=mock_client):
            yield mock_client

    @pytest.fixture
    def mock_settings(self):
        """Create mock settings for S3."""
        settings = MagicMock()
        settings.S3_ENDPOINT_URL = "http://localhost:9000"
        settings.S3_REGION = "us-east-1"
        settings.S3_ACCESS_KEY_ID = "test-key"
        settings.S3_SECRET_ACCESS_KEY = "test-secret"
        settings.S3_USE_SSL = False
        settings.S3_ADDRESSING_STYLE = "path"
        settings.S3_CONDITIONAL_DELETE = True
        return settings

    @pytest.fixture
    def transport(self, mock_s3, mock_settings):
        """Create S3Transport with mocked boto3."""
        return S3Transport(settings=mock_settings)

    def test_conditional_delete_capability_follows_settings(self, mock_s3, mock_settings):
        mock_settings.S3_CONDITIONAL_DELETE = False
        assert S3Transport(settings=mock_settings).supports_conditional_delete is False

    def test_put_object_create_if_absent(self, transport, mock_s3):
        """Create sends If-None-Match and returns the new ETag."""
        mock_s3.put_object.return_value = {"ETag": '"etag-1"'}

        result = transport.put_object(
            bucket="test-bucket",
            key="test/key",
            body=b"{}",
            content_type="application/json",
            if_none_match="*",
        )

        assert result.etag == '"etag-1"'
        assert result.response == {"ETag": '"etag-1"'}
        mock_s3.put_object.assert_called_once_with(
            Bucket="test-bucket",
            Key="test/key",
            Body=b"{}",
            ContentType="application/json",
            IfNoneMatch="*",
        )

    def test_put_object_if_match(self, transport, mock_s3):
        """Update sends If-Match only."""
        mock_s3.put_object.return_value = {"ETag": '"etag-2"'}

        transport.put_object(
            bucket="test-bucket",
            key="test/key",
            body=b"x",
            content_type="text/plain",
            if_match='"etag-1"',
        )

        call_args = mock_s3.put_object.call_args
        assert call_args[1]["IfMatch"] == '"etag-1"'
        assert "IfNoneMatch" not in call_args[1]

    def test_put_object_missing_etag(self, transport, mock_s3):
        mock_s3.put_object.return_value = {}

        with pytest.raises(TransportError, match="S3 response missing ETag"):
            transport.put_object(
                bucket="test-bucket", key="k", body=b"", content_type="text/plain"
            )

    @pytest.mark.parametrize(
        "code", ["PreconditionFailed", "ConditionalRequestConflict"]
    )
    def test_put_object_precondition_failed(self, transport, mock_s3, code):
        mock_s3.put_object.side_effect = _client_error(code, status=412)

        with pytest.raises(PreconditionFailedError):
            transport.put_object(
                bucket="test-bucket",
                key="k",
                body=b"",
                content_type="text/plain",
                if_none_match="*",
            )

    def test_put_object_if_match_on_missing_key(self, transport, mock_s3):
        mock_s3.put_object.side_effect = _client_error("NoSuchKey", status=404)

        with pytest.raises(NotFoundError, match="Object not found: k"):
            transport.put_object(
                bucket="test-bucket",
                key="k",
                body=b"",
                content_type="text/plain",
                if_match='"etag"',
            )

    def test_put_object_other_client_error(self, transport, mock_s3):
        error = _client_error("AccessDenied", status=403)
        mock_s3.put_object.side_effect = error

        with pytest.raises(TransportError, match="Failed to put object k") as exc_info:
            transport.put_object(
                bucket="test-bucket", key="k", body=b"", content_type="text/plain"
            )
        assert exc_info.value.__cause__ is error

    def test_put_object_connection_error(self, transport, mock_s3):
        mock_s3.put_object.side_effect = EndpointConnectionError(
            endpoint_url="http://localhost:9000"
        )

        with pytest.raises(TransportError):
            transport.put_object(
                bucket="test-bucket", key="k", body=b"", content_type="text/plain"
            )

    def test_get_object_reads_and_closes_body(self, transport, mock_s3):
        """GET buffers the streaming body and strips it from the response."""
        stream = MagicMock()
        stream.read.return_value = b'{"hello":"world"}'
        mock_s3.get_object.return_value = {
            "Body": stream,
            "ETag": '"etag-1"',
            "ContentType": "application/json",
        }

        result = transport.get_object(bucket="test-bucket", key="test/key")

        assert result.body == b'{"hello":"world"}'
        assert result.etag == '"etag-1"'
        assert result.content_type == "application/json"
        assert "Body" not in result.response
        stream.close.assert_called_once()
        mock_s3.get_object.assert_called_once_with(Bucket="test-bucket", Key="test/key")

    def test_get_object_if_match(self, transport, mock_s3):
        mock_s3.get_object.return_value = {
            "Body": io.BytesIO(b"data"),
            "ETag": '"etag-1"',
        }

        transport.get_object(bucket="test-bucket", key="test/key", if_match='"etag-1"')

        mock_s3.get_object.assert_called_once_with(
            Bucket="test-bucket", Key="test/key", IfMatch='"etag-1"'
        )

    def test_get_object_not_found(self, transport, mock_s3):
        mock_s3.get_object.side_effect = _client_error("NoSuchKey", "GetObject", 404)

        with pytest.raises(NotFoundError):
            transport.get_object(bucket="test-bucket", key="missing")

    def test_get_object_status_only_not_found(self, transport, mock_s3):
        """Responses without an error code fall back to the HTTP status."""
        mock_s3.get_object.side_effect = ClientError(
            {"Error": {}, "ResponseMetadata": {"HTTPStatusCode": 404}}, "GetObject"
        )

        with pytest.raises(NotFoundError):
            transport.get_object(bucket="test-bucket", key="missing")

    def test_get_object_precondition_failed(self, transport, mock_s3):
        mock_s3.get_object.side_effect = _client_error("PreconditionFailed", "GetObject", 412)

        with pytest.raises(PreconditionFailedError):
            transport.get_object(bucket="test-bucket", key="k", if_match='"stale"')

    def test_get_object_missing_etag(self, transport, mock_s3):
        mock_s3.get_object.return_value = {"Body": io.BytesIO(b"data")}

        with pytest.raises(TransportError, match="S3 response missing ETag"):
            transport.get_object(bucket="test-bucket", key="k")

    def test_delete_object(self, transport, mock_s3):
        transport.delete_object(bucket="test-bucket", key="test/key")

        mock_s3.delete_object.assert_called_once_with(
            Bucket="test-bucket", Key="test/key"
        )

    def test_delete_object_if_match(self, transport, mock_s3):
        transport.delete_object(bucket="test-bucket", key="test/key", if_match='"e"')

        mock_s3.delete_object.assert_called_once_with(
            Bucket="test-bucket", Key="test/key", IfMatch='"e"'
        )

    def test_delete_object_exception(self, transport, mock_s3):
        error = _client_error("AccessDenied", "DeleteObject", 403)
        mock_s3.delete_object.side_effect = error

        with pytest.raises(TransportError, match="Failed to delete object test/key") as exc_info:
            transport.delete_object(bucket="test-bucket", key="test/key")
        assert exc_info.value.__cause__ is error

    def test_delete_objects_batches(self, transport, mock_s3):
        mock_s3.delete_objects.return_value = {}
        keys = [f"p/{i:05d}" for i in range(MAX_DELETE_BATCH + 5)]

        removed = transport.delete_objects(bucket="test-bucket", keys=keys)

        assert removed == len(keys)
        assert mock_s3.delete_objects.call_count == 2
        second = mock_s3.delete_objects.call_args_list[1][1]
        assert second["Delete"]["Objects"] == [{"Key": k} for k in keys[MAX_DELETE_BATCH:]]
        assert second["Delete"]["Quiet"] is True

    def test_delete_objects_tolerates_missing_keys(self, transport, mock_s3):
        mock_s3.delete_objects.return_value = {
            "Errors": [{"Key": "p/1", "Code": "NoSuchKey"}]
        }

        assert transport.delete_objects(bucket="test-bucket", keys=["p/1", "p/2"]) == 2

    def test_delete_objects_reports_failures(self, transport, mock_s3):
        mock_s3.delete_objects.return_value = {
            "Errors": [{"Key": "p/1", "Code": "AccessDenied"}]
        }

        with pytest.raises(TransportError, match="first p/1: AccessDenied"):
            transport.delete_objects(bucket="test-bucket", keys=["p/1"])

    def test_list_objects_first_page(self, transport, mock_s3):
        modified = datetime(2024, 1, 1, tzinfo=timezone.utc)
        mock_s3.list_objects_v2.return_value = {
            "Contents": [
                {"Key": "p/a", "Size": 3, "ETag": '"a"', "LastModified": modified},
                {"Key": "p/b", "Size": 4, "ETag": '"b"', "LastModified": modified},
            ],
            "IsTruncated": True,
            "NextContinuationToken": "token-2",
            "KeyCount": 2,
        }

        result = transport.list_objects(bucket="test-bucket", prefix="p/", max_keys=2)

        assert isinstance(result, ListResult)
        assert [o.key for o in result.objects] == ["p/a", "p/b"]
        assert result.objects[0].size == 3
        assert result.objects[0].last_modified == modified
        assert result.is_truncated is True
        assert result.next_token == "token-2"
        mock_s3.list_objects_v2.assert_called_once_with(
            Bucket="test-bucket", Prefix="p/", MaxKeys=2
        )

    def test_list_objects_with_continuation(self, transport, mock_s3):
        mock_s3.list_objects_v2.return_value = {"KeyCount": 0, "IsTruncated": False}

        result = transport.list_objects(
            bucket="test-bucket", prefix="", continuation_token="token-2"
        )

        assert result.objects == ()
        assert result.is_truncated is False
        assert result.next_token is None
        mock_s3.list_objects_v2.assert_called_once_with(
            Bucket="test-bucket", Prefix="", ContinuationToken="token-2"
        )

    def test_list_objects_exception(self, transport, mock_s3):
        mock_s3.list_objects_v2.side_effect = _client_error("NoSuchBucket", "ListObjectsV2", 404)

        with pytest.raises(TransportError, match="Failed to list objects under p/"):
            transport.list_objects(bucket="test-bucket", prefix="p/")


def test_build_client_disables_retries():
    """Conditional writes must not be replayed by botocore after a lost response."""
    from s3store.common.config import Settings

    settings = Settings(S3_ENDPOINT_URL="http://localhost:9000", S3_REGION="us-east-1")
    with patch("boto3.client") as client:
        S3Transport._build_client(settings)

    config = client.call_args.kwargs["config"]
    assert config.retries == {"max_attempts": 1, "mode": "standard"}
    assert client.call_args.kwargs["endpoint_url"] == "http://localhost:9000"
