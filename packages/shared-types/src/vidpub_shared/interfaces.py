"""
Cloud-agnostic interfaces for object storage and the asset repository.

Implementations (S3, DynamoDB) live in aws-adapters. Pipeline logic depends on
these interfaces and receives the implementation by injection.
"""

from pathlib import Path
from typing import Protocol, runtime_checkable

from .models import Category, StoredObject, VideoAsset


@runtime_checkable
class ObjectStorage(Protocol):
    """Remote durable storage for renditions and thumbnails."""

    def upload(self, local_path: str | Path, remote_folder: str) -> StoredObject:
        """Upload a local file under remote_folder. Raises StorageError on failure."""
        ...

    def delete(self, object_id: str) -> bool:
        """Delete one object. Missing objects count as deleted. False on failure."""
        ...

    def delete_folder(self, remote_folder: str) -> bool:
        """Delete every object under remote_folder. False on failure."""
        ...

    def exists(self, object_id: str) -> bool:
        """Return True if the object exists, False otherwise."""
        ...


@runtime_checkable
class AssetStore(Protocol):
    """Store for published video assets."""

    def create(self, asset: VideoAsset) -> str:
        """Persist a new ready asset in a single write; return its id. Raises PersistenceError."""
        ...

    def get(self, asset_id: str, *, consistent_read: bool = False) -> VideoAsset | None:
        """Return the asset if it exists, otherwise None."""
        ...

    def update_metadata(
        self,
        asset_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        categories: list[Category] | None = None,
        tags: list[str] | None = None,
        is_published: bool | None = None,
    ) -> VideoAsset | None:
        """Update selected metadata fields; return the updated asset or None if missing."""
        ...

    def increment_views(self, asset_id: str) -> None:
        """Atomically add one to the view counter."""
        ...

    def delete(self, asset_id: str) -> None:
        """Delete the asset record."""
        ...
