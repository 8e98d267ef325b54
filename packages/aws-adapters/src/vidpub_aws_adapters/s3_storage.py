"""S3 implementation of ObjectStorage."""

import logging
import mimetypes
import os
import uuid
from pathlib import Path
from typing import Any

import boto3
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError
from vidpub_shared import StorageError, StoredObject, build_object_key

logger = logging.getLogger(__name__)

# Minimum S3 multipart part size (except last) is 5 MB
MULTIPART_CHUNK_SIZE = 8 * 1024 * 1024  # 8 MB
MULTIPART_THRESHOLD = 100 * 1024 * 1024  # 100 MB: use multipart above this

# delete_objects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000

CONTENT_TYPE_MAP = {
    ".mp4": "video/mp4",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


def _content_type(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in CONTENT_TYPE_MAP:
        return CONTENT_TYPE_MAP[suffix]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


class S3ObjectStorage:
    """ObjectStorage implementation using one S3 bucket."""

    def __init__(
        self,
        bucket: str,
        *,
        public_base_url: str | None = None,
        region_name: str | None = None,
        endpoint_url: str | None = None,
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self._region_name = region_name
        self._client = client or boto3.client(
            "s3",
            region_name=region_name,
            endpoint_url=endpoint_url,
        )
        self._transfer_config = TransferConfig(
            multipart_threshold=MULTIPART_THRESHOLD,
            multipart_chunksize=MULTIPART_CHUNK_SIZE,
        )

    @property
    def bucket(self) -> str:
        return self._bucket

    def url_for(self, key: str) -> str:
        """Public URL of an object key (CDN base when configured, else virtual-hosted S3)."""
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        region = self._region_name or self._client.meta.region_name or "us-east-1"
        return f"https://{self._bucket}.s3.{region}.amazonaws.com/{key}"

    def upload(self, local_path: str | Path, remote_folder: str) -> StoredObject:
        """Upload a local file under remote_folder; uses multipart for files over 100 MB."""
        path = Path(local_path)
        key = build_object_key(remote_folder, uuid.uuid4().hex, path.suffix)
        try:
            size = os.path.getsize(path)
            logger.debug("s3: uploading %s (%d bytes) -> s3://%s/%s", path.name, size, self._bucket, key)
            self._client.upload_file(
                str(path),
                self._bucket,
                key,
                ExtraArgs={"ContentType": _content_type(path)},
                Config=self._transfer_config,
            )
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            raise StorageError(f"upload {path.name} to {remote_folder} failed: {e}") from e
        logger.info("s3: uploaded %s -> s3://%s/%s", path.name, self._bucket, key)
        return StoredObject(url=self.url_for(key), object_id=key)

    def delete(self, object_id: str) -> bool:
        """Delete one object. S3 reports success for missing keys, so delete is idempotent."""
        try:
            self._client.delete_object(Bucket=self._bucket, Key=object_id)
        except (ClientError, BotoCoreError) as e:
            logger.warning("s3: delete s3://%s/%s failed: %s", self._bucket, object_id, e)
            return False
        return True

    def delete_folder(self, remote_folder: str) -> bool:
        """Delete every object under remote_folder/ (paginated list + batched delete)."""
        prefix = remote_folder.strip("/") + "/"
        try:
            keys = self._list_keys(prefix)
            for start in range(0, len(keys), DELETE_BATCH_SIZE):
                batch = keys[start : start + DELETE_BATCH_SIZE]
                resp = self._client.delete_objects(
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
                errors = resp.get("Errors") or []
                if errors:
                    logger.warning(
                        "s3: delete_folder %s: %d key(s) not deleted (first: %s)",
                        prefix,
                        len(errors),
                        errors[0].get("Key"),
                    )
                    return False
        except (ClientError, BotoCoreError) as e:
            logger.warning("s3: delete_folder s3://%s/%s failed: %s", self._bucket, prefix, e)
            return False
        logger.info("s3: deleted folder s3://%s/%s (%d objects)", self._bucket, prefix, len(keys))
        return True

    def _list_keys(self, prefix: str) -> list[str]:
        keys: list[str] = []
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))
        return keys

    def exists(self, object_id: str) -> bool:
        """Return True if the object exists, False otherwise."""
        try:
            self._client.head_object(Bucket=self._bucket, Key=object_id)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey"):
                return False
            raise
