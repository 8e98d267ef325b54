"""
Publish coordinator: upload encoded renditions and the thumbnail concurrently,
pick the canonical rendition, and assemble a ready VideoAsset.

Publishing is all-or-nothing. If any upload fails, the uploads that did succeed
in the same batch are deleted again (compensating delete) and PublishError is
raised. The assembled asset is returned unsaved: persisting it is a separate step.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path
from typing import Iterable, Sequence

from vidpub_shared import (
    AssetStatus,
    IngestionCancelled,
    PublishedRendition,
    PublishError,
    PublishMetadata,
    RenditionResult,
    RenditionSpec,
    RenditionStatus,
    StorageError,
    StoredObject,
    VideoAsset,
    build_rendition_folder,
    build_thumbnail_folder,
)
from vidpub_shared.interfaces import ObjectStorage
from vidpub_shared.keys import DEFAULT_THUMBNAILS_FOLDER, DEFAULT_VIDEOS_FOLDER

from .renditions import canonical_spec

logger = logging.getLogger(__name__)

THUMBNAIL_LABEL = "thumbnail"


def delete_remote_objects(storage: ObjectStorage, object_ids: Iterable[str]) -> list[str]:
    """
    Best-effort delete of remote objects. Returns the ids that could not be deleted.

    Used to undo a partially completed batch; failures are logged and skipped.
    """
    failed: list[str] = []
    for object_id in object_ids:
        try:
            ok = storage.delete(object_id)
        except Exception as e:
            logger.warning("publish: compensating delete of %s raised: %s", object_id, e)
            ok = False
        if not ok:
            failed.append(object_id)
    if failed:
        logger.warning("publish: %d remote object(s) left behind: %s", len(failed), failed)
    return failed


class PublishCoordinator:
    """Uploads one run's outputs and builds the asset record."""

    def __init__(
        self,
        storage: ObjectStorage,
        catalog: Sequence[RenditionSpec],
        *,
        max_concurrency: int = 4,
        videos_folder: str = DEFAULT_VIDEOS_FOLDER,
        thumbnails_folder: str = DEFAULT_THUMBNAILS_FOLDER,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._storage = storage
        self._canonical_name = canonical_spec(tuple(catalog)).name
        self._max_concurrency = max_concurrency
        self._videos_folder = videos_folder
        self._thumbnails_folder = thumbnails_folder

    def publish(
        self,
        results: Sequence[RenditionResult],
        thumbnail_path: str | Path,
        meta: PublishMetadata,
        *,
        asset_id: str,
        cancel_event: threading.Event | None = None,
    ) -> VideoAsset:
        """Upload everything, then return a ready (unsaved) VideoAsset."""
        not_encoded = [r.spec.name for r in results if r.status != RenditionStatus.ENCODED]
        if not results or not_encoded:
            raise ValueError(f"publish requires encoded renditions (not encoded: {not_encoded})")
        by_name = {r.spec.name: r for r in results}
        if self._canonical_name not in by_name:
            raise ValueError(f"canonical rendition {self._canonical_name} missing from results")

        rendition_folder = build_rendition_folder(asset_id, self._videos_folder)
        thumbnail_folder = build_thumbnail_folder(asset_id, self._thumbnails_folder)
        jobs: list[tuple[str, Path, str]] = [
            (r.spec.name, Path(r.local_path), rendition_folder) for r in results
        ]
        jobs.append((THUMBNAIL_LABEL, Path(thumbnail_path), thumbnail_folder))

        logger.info(
            "publish: asset_id=%s uploading %d file(s), max_concurrency=%d",
            asset_id,
            len(jobs),
            self._max_concurrency,
        )
        uploaded, failures = self._upload_all(jobs, cancel_event)

        if failures:
            label, error = failures[0]
            logger.warning(
                "publish: asset_id=%s %d upload(s) failed (first: %s: %s); compensating %d",
                asset_id,
                len(failures),
                label,
                error,
                len(uploaded),
            )
            delete_remote_objects(self._storage, [o.object_id for o in uploaded.values()])
            if isinstance(error, IngestionCancelled):
                raise error
            if isinstance(error, StorageError):
                raise PublishError(f"{label}: {error.cause}") from error
            raise error

        renditions = [
            PublishedRendition(
                spec_name=r.spec.name,
                remote_url=uploaded[r.spec.name].url,
                remote_object_id=uploaded[r.spec.name].object_id,
                duration_seconds=r.duration_seconds or 0.0,
            )
            for r in results
        ]
        canonical = next(p for p in renditions if p.spec_name == self._canonical_name)
        thumbnail = uploaded[THUMBNAIL_LABEL]
        now = int(time.time())
        asset = VideoAsset(
            asset_id=asset_id,
            owner_id=meta.owner_id,
            title=meta.title,
            description=meta.description,
            thumbnail_url=thumbnail.url,
            thumbnail_object_id=thumbnail.object_id,
            canonical_video_url=canonical.remote_url,
            renditions=renditions,
            duration=canonical.duration_seconds,
            status=AssetStatus.READY,
            categories=list(meta.categories),
            tags=list(meta.tags),
            created_at=now,
            updated_at=now,
        )
        logger.info(
            "publish: asset_id=%s published %d rendition(s), canonical=%s",
            asset_id,
            len(renditions),
            canonical.spec_name,
        )
        return asset

    def _upload_all(
        self,
        jobs: list[tuple[str, Path, str]],
        cancel_event: threading.Event | None,
    ) -> tuple[dict[str, StoredObject], list[tuple[str, BaseException]]]:
        """Run every upload to completion; return successes by label and failures in job order."""
        with ThreadPoolExecutor(
            max_workers=min(self._max_concurrency, len(jobs)),
            thread_name_prefix="upload",
        ) as pool:
            futures = [
                (label, pool.submit(self._upload_one, label, path, folder, cancel_event))
                for label, path, folder in jobs
            ]
            wait([f for _, f in futures])
        uploaded: dict[str, StoredObject] = {}
        failures: list[tuple[str, BaseException]] = []
        for label, future in futures:
            error = future.exception()
            if error is None:
                uploaded[label] = future.result()
            else:
                failures.append((label, error))
        return uploaded, failures

    def _upload_one(
        self,
        label: str,
        path: Path,
        folder: str,
        cancel_event: threading.Event | None,
    ) -> StoredObject:
        if cancel_event is not None and cancel_event.is_set():
            raise IngestionCancelled(f"upload of {label} cancelled")
        stored = self._storage.upload(path, folder)
        logger.debug("publish: %s -> %s", label, stored.object_id)
        return stored
