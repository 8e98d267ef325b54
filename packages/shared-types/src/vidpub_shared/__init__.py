"""Shared types and conventions for the video publish pipeline."""

from .errors import (
    EncodeError,
    IngestionCancelled,
    IntakeError,
    PersistenceError,
    PipelineError,
    PublishError,
    StorageError,
)
from .interfaces import AssetStore, ObjectStorage
from .keys import (
    build_object_key,
    build_rendition_folder,
    build_thumbnail_folder,
    parse_object_folder,
)
from .logging_config import configure_logging
from .models import (
    AssetStatus,
    Category,
    IngestionStage,
    PublishedRendition,
    PublishMetadata,
    RenditionResult,
    RenditionSpec,
    RenditionStatus,
    StoredObject,
    TempFileHandle,
    TranscodeBatch,
    TranscodeOutcome,
    VideoAsset,
)

__version__ = "0.1.0"
__all__ = [
    "AssetStatus",
    "AssetStore",
    "Category",
    "EncodeError",
    "IngestionCancelled",
    "IngestionStage",
    "IntakeError",
    "ObjectStorage",
    "PersistenceError",
    "PipelineError",
    "PublishError",
    "PublishMetadata",
    "PublishedRendition",
    "RenditionResult",
    "RenditionSpec",
    "RenditionStatus",
    "StorageError",
    "StoredObject",
    "TempFileHandle",
    "TranscodeBatch",
    "TranscodeOutcome",
    "VideoAsset",
    "build_object_key",
    "build_rendition_folder",
    "build_thumbnail_folder",
    "configure_logging",
    "parse_object_folder",
]
