"""
Ingestion pipeline: intake -> transcoding -> publishing -> committing -> ready.

Any stage may move the run to failed. Temp files are always released through
the run's janitor; remote objects uploaded before a failure are deleted again
on a best-effort basis. Nothing is persisted unless every rendition was encoded
and every upload succeeded. No stage is retried.
"""

from __future__ import annotations

import logging
import shutil
import threading
import uuid
from pathlib import Path
from typing import Sequence

from vidpub_shared import (
    EncodeError,
    IngestionCancelled,
    IngestionStage,
    IntakeError,
    PersistenceError,
    PublishMetadata,
    RenditionSpec,
    StorageError,
    TranscodeBatch,
    TranscodeOutcome,
    VideoAsset,
)
from vidpub_shared.interfaces import AssetStore, ObjectStorage

from .janitor import TempFileJanitor
from .orchestrator import TranscodeOrchestrator
from .publisher import PublishCoordinator, delete_remote_objects

logger = logging.getLogger(__name__)


def _raise_if_cancelled(cancel_event: threading.Event | None, asset_id: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise IngestionCancelled(f"ingestion {asset_id} cancelled")


def _first_encode_error(batch: TranscodeBatch) -> EncodeError:
    first = batch.failed()[0]
    return EncodeError(first.spec.name, first.error or "unknown encoder failure")


class IngestionPipeline:
    """Runs one source video through the whole publish flow."""

    def __init__(
        self,
        orchestrator: TranscodeOrchestrator,
        publisher: PublishCoordinator,
        storage: ObjectStorage,
        asset_store: AssetStore,
        catalog: Sequence[RenditionSpec],
        *,
        work_dir_root: str | None = None,
    ) -> None:
        if not catalog:
            raise ValueError("rendition catalog must not be empty")
        self._orchestrator = orchestrator
        self._publisher = publisher
        self._storage = storage
        self._asset_store = asset_store
        self._catalog = tuple(catalog)
        self._work_dir_root = work_dir_root

    def run(
        self,
        source_path: str | Path,
        thumbnail_path: str | Path,
        meta: PublishMetadata,
        *,
        cancel_event: threading.Event | None = None,
        asset_id: str | None = None,
    ) -> VideoAsset:
        """
        Ingest one video and return the persisted, ready asset.

        Raises IntakeError, EncodeError, PublishError, PersistenceError or
        IngestionCancelled; in every case no asset is persisted and local temp
        files are removed.
        """
        asset_id = asset_id or uuid.uuid4().hex
        stage = IngestionStage.INTAKE
        logger.info("ingest: asset_id=%s stage=%s owner_id=%s", asset_id, stage.value, meta.owner_id)
        try:
            with TempFileJanitor(self._work_dir_root) as janitor:
                source_copy = self._intake(Path(source_path), janitor)
                _raise_if_cancelled(cancel_event, asset_id)

                stage = self._advance(asset_id, IngestionStage.TRANSCODING)
                batch = self._orchestrator.transcode_all(
                    source_copy, self._catalog, janitor, cancel_event=cancel_event
                )
                _raise_if_cancelled(cancel_event, asset_id)
                if batch.outcome != TranscodeOutcome.ALL_SUCCEEDED:
                    # Partial output is never published: missing renditions degrade playback
                    logger.warning(
                        "ingest: asset_id=%s transcode outcome=%s failed=%s",
                        asset_id,
                        batch.outcome.value,
                        [r.spec.name for r in batch.failed()],
                    )
                    raise _first_encode_error(batch)

                stage = self._advance(asset_id, IngestionStage.PUBLISHING)
                asset = self._publisher.publish(
                    batch.results,
                    thumbnail_path,
                    meta,
                    asset_id=asset_id,
                    cancel_event=cancel_event,
                )

                stage = self._advance(asset_id, IngestionStage.COMMITTING)
                self._commit(asset, cancel_event)
                stage = self._advance(asset_id, IngestionStage.READY)
                return asset
        except BaseException as e:
            logger.error(
                "ingest: asset_id=%s stage=%s -> %s: %s: %s",
                asset_id,
                stage.value,
                IngestionStage.FAILED.value,
                type(e).__name__,
                e,
            )
            raise

    @staticmethod
    def _advance(asset_id: str, stage: IngestionStage) -> IngestionStage:
        logger.info("ingest: asset_id=%s stage=%s", asset_id, stage.value)
        return stage

    @staticmethod
    def _intake(source_path: Path, janitor: TempFileJanitor) -> Path:
        """Copy the caller's source into the run's work dir (tracked before the copy starts)."""
        source_copy = janitor.new_path(source_path.suffix or ".mp4", created_by="intake")
        try:
            shutil.copyfile(source_path, source_copy)
        except OSError as e:
            raise IntakeError(f"cannot read {source_path}: {e.strerror or e}") from e
        return source_copy

    def _commit(self, asset: VideoAsset, cancel_event: threading.Event | None) -> None:
        """
        Persist the asset. On failure (or cancellation) delete the run's remote objects.

        Storage and database have no shared transaction, so compensation happens
        synchronously here.
        """
        try:
            _raise_if_cancelled(cancel_event, asset.asset_id)
            self._asset_store.create(asset)
        except (PersistenceError, IngestionCancelled):
            object_ids = asset.remote_object_ids()
            logger.warning(
                "ingest: asset_id=%s not committed; deleting %d remote object(s)",
                asset.asset_id,
                len(object_ids),
            )
            delete_remote_objects(self._storage, object_ids)
            raise

    def delete_asset(self, asset_id: str) -> bool:
        """
        Delete an asset: remote objects first (thumbnail and every rendition), then the record.

        Returns False if the asset does not exist. If any remote object cannot be
        deleted the record is kept and StorageError is raised, so the delete can be
        issued again.
        """
        asset = self._asset_store.get(asset_id, consistent_read=True)
        if asset is None:
            logger.info("delete: asset_id=%s not found", asset_id)
            return False
        object_ids = asset.remote_object_ids()
        failed = delete_remote_objects(self._storage, object_ids)
        if failed:
            raise StorageError(
                f"asset {asset_id}: {len(failed)} of {len(object_ids)} remote object(s) not deleted"
            )
        self._asset_store.delete(asset_id)
        logger.info("delete: asset_id=%s removed (%d remote object(s))", asset_id, len(object_ids))
        return True
