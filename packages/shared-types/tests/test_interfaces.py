"""Tests that adapters and fakes satisfy the runtime-checkable interfaces."""

from vidpub_shared import AssetStore, ObjectStorage, StoredObject


class _MemoryStorage:
    def upload(self, local_path, remote_folder):
        return StoredObject(url="u", object_id=f"{remote_folder}/x")

    def delete(self, object_id):
        return True

    def delete_folder(self, remote_folder):
        return True

    def exists(self, object_id):
        return False


class _MissingDelete:
    def upload(self, local_path, remote_folder):
        return StoredObject(url="u", object_id="x")


def test_object_storage_protocol_satisfied() -> None:
    assert isinstance(_MemoryStorage(), ObjectStorage)


def test_object_storage_protocol_requires_all_methods() -> None:
    assert not isinstance(_MissingDelete(), ObjectStorage)


def test_asset_store_protocol_not_satisfied_by_storage() -> None:
    assert not isinstance(_MemoryStorage(), AssetStore)
