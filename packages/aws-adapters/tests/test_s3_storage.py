"""Tests for S3 ObjectStorage."""

from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError

from vidpub_aws_adapters import S3ObjectStorage
from vidpub_shared import StorageError


def _video(tmp_path, name="rendition.mp4", body=b"video bytes"):
    f = tmp_path / name
    f.write_bytes(body)
    return f


class TestS3ObjectStorage:
    """Tests for upload, delete, delete_folder, exists."""

    def test_upload_returns_url_and_object_id(self, assets_bucket, tmp_path):
        storage = S3ObjectStorage(assets_bucket, region_name="us-east-1")
        stored = storage.upload(_video(tmp_path), "videos/a1")
        assert stored.object_id.startswith("videos/a1/")
        assert stored.object_id.endswith(".mp4")
        assert stored.url == (
            f"https://{assets_bucket}.s3.us-east-1.amazonaws.com/{stored.object_id}"
        )
        body = boto3.client("s3", region_name="us-east-1").get_object(
            Bucket=assets_bucket, Key=stored.object_id
        )
        assert body["Body"].read() == b"video bytes"
        assert body["ContentType"] == "video/mp4"

    def test_upload_uses_public_base_url(self, assets_bucket, tmp_path):
        storage = S3ObjectStorage(
            assets_bucket,
            public_base_url="https://cdn.example.com/",
            region_name="us-east-1",
        )
        stored = storage.upload(_video(tmp_path, "thumb.jpg", b"jpg"), "thumbnails/a1")
        assert stored.url == f"https://cdn.example.com/{stored.object_id}"

    def test_upload_same_file_twice_gets_distinct_ids(self, assets_bucket, tmp_path):
        storage = S3ObjectStorage(assets_bucket, region_name="us-east-1")
        f = _video(tmp_path)
        assert storage.upload(f, "videos/a1").object_id != storage.upload(f, "videos/a1").object_id

    def test_upload_missing_file_raises_storage_error(self, assets_bucket, tmp_path):
        storage = S3ObjectStorage(assets_bucket, region_name="us-east-1")
        with pytest.raises(StorageError):
            storage.upload(tmp_path / "missing.mp4", "videos/a1")

    def test_upload_missing_bucket_raises_storage_error(self, moto_aws, tmp_path):
        storage = S3ObjectStorage("no-such-bucket", region_name="us-east-1")
        with pytest.raises(StorageError):
            storage.upload(_video(tmp_path), "videos/a1")

    def test_delete_and_exists(self, assets_bucket, tmp_path):
        storage = S3ObjectStorage(assets_bucket, region_name="us-east-1")
        stored = storage.upload(_video(tmp_path), "videos/a1")
        assert storage.exists(stored.object_id) is True
        assert storage.delete(stored.object_id) is True
        assert storage.exists(stored.object_id) is False

    def test_delete_is_idempotent(self, assets_bucket):
        storage = S3ObjectStorage(assets_bucket, region_name="us-east-1")
        assert storage.delete("videos/a1/never-uploaded.mp4") is True
        assert storage.delete("videos/a1/never-uploaded.mp4") is True

    def test_delete_client_error_returns_false(self):
        client = MagicMock()
        client.delete_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "no"}}, "DeleteObject"
        )
        storage = S3ObjectStorage("bucket", client=client)
        assert storage.delete("videos/a1/x.mp4") is False

    def test_delete_folder_removes_only_that_prefix(self, assets_bucket, tmp_path):
        storage = S3ObjectStorage(assets_bucket, region_name="us-east-1")
        a1 = [storage.upload(_video(tmp_path), "videos/a1") for _ in range(3)]
        other = storage.upload(_video(tmp_path), "videos/a10")
        assert storage.delete_folder("videos/a1") is True
        assert not any(storage.exists(o.object_id) for o in a1)
        assert storage.exists(other.object_id) is True

    def test_delete_folder_empty_prefix_ok(self, assets_bucket):
        storage = S3ObjectStorage(assets_bucket, region_name="us-east-1")
        assert storage.delete_folder("videos/nothing-here") is True

    def test_delete_folder_missing_bucket_returns_false(self, moto_aws):
        storage = S3ObjectStorage("no-such-bucket", region_name="us-east-1")
        assert storage.delete_folder("videos/a1") is False
