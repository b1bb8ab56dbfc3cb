"""
Unit tests for the S3 storage provider with a stubbed boto3 client.
"""

from unittest.mock import MagicMock

import pytest

from common.providers.storage.paths import get_anonymous_file_path, get_user_file_path
from common.providers.storage.s3 import S3Storage


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://r2.example.com/obj?sig=1"
    return client


@pytest.mark.asyncio
class TestS3Storage:
    async def test_upload(self, s3_client):
        storage = S3Storage(client=s3_client)

        ok = await storage.upload("bucket", "users/1/files/a.pdf", b"data", "application/pdf")

        assert ok is True
        s3_client.put_object.assert_called_once_with(
            Body=b"data",
            Bucket="bucket",
            Key="users/1/files/a.pdf",
            ContentType="application/pdf",
        )

    async def test_upload_failure_returns_false(self, s3_client):
        s3_client.put_object.side_effect = RuntimeError("network")

        assert await S3Storage(client=s3_client).upload("bucket", "key", b"data") is False

    async def test_delete(self, s3_client):
        assert await S3Storage(client=s3_client).delete("bucket", "key") is True
        s3_client.delete_object.assert_called_once_with(Bucket="bucket", Key="key")

    async def test_signed_url(self, s3_client):
        url = await S3Storage(client=s3_client).issue_signed_url("bucket", "key", 3600)

        assert url == "https://r2.example.com/obj?sig=1"
        s3_client.generate_presigned_url.assert_called_once_with(
            "get_object", Params={"Bucket": "bucket", "Key": "key"}, ExpiresIn=3600
        )

    async def test_signed_url_failure(self, s3_client):
        s3_client.generate_presigned_url.side_effect = RuntimeError("bad credentials")

        assert await S3Storage(client=s3_client).issue_signed_url("b", "k", 60) is None


def test_object_key_layout():
    assert get_user_file_path(7, "abc_doc.pdf") == "users/7/files/abc_doc.pdf"
    key = get_anonymous_file_path("1.2.3.4", "abc_doc.pdf")
    assert key.startswith("anonymous/")
    assert key.endswith("/files/abc_doc.pdf")
    assert "1.2.3.4" not in key
    assert key == get_anonymous_file_path("1.2.3.4", "abc_doc.pdf")
