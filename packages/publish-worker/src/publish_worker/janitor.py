"""
Temp resource janitor: tracks every local file created during one ingestion run
and removes all of them when the run ends.

Use as a context manager so release happens on success, failure and cancellation:

    with TempFileJanitor() as janitor:
        out = janitor.new_path(".mp4", created_by="encoder:720p")
        ...
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import uuid
from pathlib import Path

from vidpub_shared import TempFileHandle

logger = logging.getLogger(__name__)


class TempFileJanitor:
    """Single owner of the run's temp files. Safe to share between encode threads."""

    def __init__(self, work_dir_root: str | Path | None = None, *, prefix: str = "ingest_") -> None:
        self._work_dir_root = str(work_dir_root) if work_dir_root else None
        self._prefix = prefix
        self._work_dir: Path | None = None
        self._handles: dict[Path, TempFileHandle] = {}
        self._lock = threading.Lock()

    def __enter__(self) -> TempFileJanitor:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release_all()

    @property
    def work_dir(self) -> Path:
        """Per-run directory, created on first use."""
        with self._lock:
            return self._ensure_work_dir()

    def _ensure_work_dir(self) -> Path:
        if self._work_dir is None:
            self._work_dir = Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._work_dir_root))
        return self._work_dir

    def handles(self) -> list[TempFileHandle]:
        with self._lock:
            return list(self._handles.values())

    def track(self, path: str | Path, created_by: str) -> TempFileHandle:
        """Register a local file for removal at the end of the run."""
        handle = TempFileHandle(path=Path(path), created_by=created_by)
        with self._lock:
            self._handles[handle.path] = handle
        logger.debug("janitor: tracking %s (created_by=%s)", handle.path, created_by)
        return handle

    def new_path(self, suffix: str, created_by: str) -> Path:
        """
        Allocate a fresh path inside the run's work dir and track it.

        The file itself is not created; tracking happens first so a crash while the
        file is being written still leaves it as a cleanup candidate.
        """
        with self._lock:
            path = self._ensure_work_dir() / f"{uuid.uuid4().hex}{suffix}"
            self._handles[path] = TempFileHandle(path=path, created_by=created_by)
        logger.debug("janitor: allocated %s (created_by=%s)", path, created_by)
        return path

    def release(self, path: str | Path) -> bool:
        """Delete one tracked file now. Returns False if deletion failed (logged)."""
        path = Path(path)
        with self._lock:
            handle = self._handles.pop(path, None)
        created_by = handle.created_by if handle else "untracked"
        return self._remove(path, created_by)

    def release_all(self) -> int:
        """
        Delete every tracked file and the run's work dir. Idempotent.

        Returns the number of files that could not be removed. Failures are logged,
        never raised: a leftover temp file is a disk-hygiene issue only.
        """
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
            work_dir, self._work_dir = self._work_dir, None
        failures = 0
        for handle in handles:
            if not self._remove(handle.path, handle.created_by):
                failures += 1
        if work_dir is not None:
            try:
                work_dir.rmdir()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("janitor: could not remove work dir %s: %s", work_dir, e)
        if handles:
            logger.info(
                "janitor: released %d temp file(s), %d failure(s)", len(handles), failures
            )
        return failures

    @staticmethod
    def _remove(path: Path, created_by: str) -> bool:
        try:
            os.unlink(path)
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.warning("janitor: failed to delete %s (created_by=%s): %s", path, created_by, e)
            return False
        logger.debug("janitor: deleted %s (created_by=%s)", path, created_by)
        return True
