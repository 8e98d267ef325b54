"""Pytest fixtures for publish-worker tests: in-memory storage, fake encoder, sample inputs."""

import threading
import time
import uuid
from pathlib import Path

import pytest

from vidpub_shared import (
    EncodeError,
    PublishMetadata,
    RenditionResult,
    RenditionStatus,
    StorageError,
    StoredObject,
)


class EventLog:
    """Thread-safe ordered log of (event, name) tuples shared by fakes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: list[tuple[str, str]] = []

    def add(self, event: str, name: str) -> None:
        with self._lock:
            self.events.append((event, name))

    def index_of_first(self, event: str) -> int:
        return next(i for i, (e, _) in enumerate(self.events) if e == event)

    def index_of_last(self, event: str) -> int:
        return max(i for i, (e, _) in enumerate(self.events) if e == event)


class MemoryStorage:
    """
    ObjectStorage keeping objects in a dict. Uploads into fail_folders raise StorageError.

    on_upload(count) is called after each stored object with the running upload count.
    """

    def __init__(
        self,
        log: EventLog,
        *,
        fail_folders: tuple[str, ...] = (),
        delay: float = 0.0,
        on_upload=None,
    ):
        self._lock = threading.Lock()
        self._log = log
        self._fail_folders = fail_folders
        self._delay = delay
        self._on_upload = on_upload
        self.objects: dict[str, bytes] = {}
        self.uploaded_ids: list[str] = []
        self.deleted_ids: list[str] = []
        self.active = 0
        self.max_active = 0

    def upload(self, local_path, remote_folder):
        self._log.add("upload_start", remote_folder)
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self._delay:
                time.sleep(self._delay)
            if any(remote_folder.startswith(f) for f in self._fail_folders):
                raise StorageError(f"quota exceeded for {remote_folder}")
            body = Path(local_path).read_bytes()
            object_id = f"{remote_folder}/{uuid.uuid4().hex}{Path(local_path).suffix}"
            with self._lock:
                self.objects[object_id] = body
                self.uploaded_ids.append(object_id)
                count = len(self.uploaded_ids)
            if self._on_upload is not None:
                self._on_upload(count)
            return StoredObject(url=f"https://cdn.test/{object_id}", object_id=object_id)
        finally:
            with self._lock:
                self.active -= 1

    def delete(self, object_id):
        with self._lock:
            self.objects.pop(object_id, None)
            self.deleted_ids.append(object_id)
        return True

    def delete_folder(self, remote_folder):
        with self._lock:
            for key in [k for k in self.objects if k.startswith(remote_folder + "/")]:
                del self.objects[key]
        return True

    def exists(self, object_id):
        return object_id in self.objects


class FakeEncoder:
    """Encoder writing a small file per spec; specs named in fail_specs raise EncodeError."""

    def __init__(
        self,
        log: EventLog,
        *,
        fail_specs: tuple[str, ...] = (),
        delay: float = 0.0,
        on_encode=None,
    ):
        self._lock = threading.Lock()
        self._log = log
        self._fail_specs = fail_specs
        self._delay = delay
        self._on_encode = on_encode
        self.created_paths: list[Path] = []
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0

    def encode(self, source_path, spec, janitor, *, cancel_event=None):
        out = janitor.new_path(".mp4", created_by=f"encoder:{spec.name}")
        with self._lock:
            self.calls.append(spec.name)
            self.created_paths.append(out)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self._log.add("encode_start", spec.name)
        try:
            out.write_bytes(b"partial " + spec.name.encode())
            if self._on_encode is not None:
                self._on_encode(spec, cancel_event)
            if self._delay:
                time.sleep(self._delay)
            if spec.name in self._fail_specs:
                janitor.release(out)
                raise EncodeError(spec.name, "ffmpeg exited with code 1")
            out.write_bytes(b"encoded " + spec.name.encode())
            return RenditionResult(
                spec=spec,
                status=RenditionStatus.ENCODED,
                local_path=out,
                duration_seconds=30.0 + spec.height / 1000,
            )
        finally:
            with self._lock:
                self.active -= 1
            self._log.add("encode_end", spec.name)


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def memory_storage_cls():
    return MemoryStorage


@pytest.fixture
def fake_encoder_cls():
    return FakeEncoder


@pytest.fixture
def source_video(tmp_path: Path) -> Path:
    p = tmp_path / "upload" / "source.mov"
    p.parent.mkdir()
    p.write_bytes(b"raw source video")
    return p


@pytest.fixture
def thumbnail(tmp_path: Path) -> Path:
    p = tmp_path / "upload" / "thumb.jpg"
    p.parent.mkdir(exist_ok=True)
    p.write_bytes(b"jpeg bytes")
    return p


@pytest.fixture
def work_root(tmp_path: Path) -> Path:
    p = tmp_path / "work"
    p.mkdir()
    return p


@pytest.fixture
def meta() -> PublishMetadata:
    return PublishMetadata(
        title="Launch day",
        description="Recorded live",
        owner_id="user-1",
        categories=["technology"],
        tags=["launch"],
    )


@pytest.fixture
def dynamodb_asset_store(monkeypatch):
    """DynamoDBAssetStore over a moto-backed Assets table."""
    import boto3
    from moto import mock_aws

    from vidpub_aws_adapters import DynamoDBAssetStore

    for name in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_SESSION_TOKEN"):
        monkeypatch.setenv(name, "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    with mock_aws():
        boto3.client("dynamodb", region_name="us-east-1").create_table(
            TableName="test-assets",
            BillingMode="PAY_PER_REQUEST",
            KeySchema=[{"AttributeName": "asset_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "asset_id", "AttributeType": "S"}],
        )
        yield DynamoDBAssetStore("test-assets", region_name="us-east-1")
