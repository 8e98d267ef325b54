"""
Transcode orchestrator: one encode task per rendition spec on a bounded pool.

The join is settle-all: every task reaches a terminal state (encoded or failed)
before transcode_all returns, and one failure never aborts its siblings.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path
from typing import Protocol, Sequence

from vidpub_shared import (
    EncodeError,
    RenditionResult,
    RenditionSpec,
    RenditionStatus,
    TranscodeBatch,
    TranscodeOutcome,
)

from .janitor import TempFileJanitor

logger = logging.getLogger(__name__)


class Encoder(Protocol):
    """Converts one source file into one rendition file on local storage."""

    def encode(
        self,
        source_path: str | Path,
        spec: RenditionSpec,
        janitor: TempFileJanitor,
        *,
        cancel_event: threading.Event | None = None,
    ) -> RenditionResult:
        ...


def classify_outcome(results: Sequence[RenditionResult]) -> TranscodeOutcome:
    """all_succeeded iff every result is encoded, total_failure iff none, else partial."""
    encoded = sum(1 for r in results if r.status == RenditionStatus.ENCODED)
    if results and encoded == len(results):
        return TranscodeOutcome.ALL_SUCCEEDED
    if encoded == 0:
        return TranscodeOutcome.TOTAL_FAILURE
    return TranscodeOutcome.PARTIAL_FAILURE


class TranscodeOrchestrator:
    """Fans out encodes for one source, capped at max_concurrency at a time."""

    def __init__(self, encoder: Encoder, *, max_concurrency: int = 2) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._encoder = encoder
        self._max_concurrency = max_concurrency

    def transcode_all(
        self,
        source_path: str | Path,
        specs: Sequence[RenditionSpec],
        janitor: TempFileJanitor,
        *,
        cancel_event: threading.Event | None = None,
    ) -> TranscodeBatch:
        """
        Encode source_path into every spec and wait for all tasks to finish.

        Results are returned in spec order regardless of completion order.
        """
        if not specs:
            raise ValueError("at least one rendition spec is required")
        logger.info(
            "transcode: %d rendition(s), max_concurrency=%d",
            len(specs),
            self._max_concurrency,
        )
        with ThreadPoolExecutor(
            max_workers=min(self._max_concurrency, len(specs)),
            thread_name_prefix="encode",
        ) as pool:
            futures = [
                pool.submit(self._encode_one, source_path, spec, janitor, cancel_event)
                for spec in specs
            ]
            wait(futures)
        # _encode_one never raises EncodeError; anything else is a bug and propagates
        results = [f.result() for f in futures]
        outcome = classify_outcome(results)
        logger.info(
            "transcode: outcome=%s encoded=%d/%d",
            outcome.value,
            sum(1 for r in results if r.status == RenditionStatus.ENCODED),
            len(results),
        )
        return TranscodeBatch(results=results, outcome=outcome)

    def _encode_one(
        self,
        source_path: str | Path,
        spec: RenditionSpec,
        janitor: TempFileJanitor,
        cancel_event: threading.Event | None,
    ) -> RenditionResult:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("transcode: %s skipped (cancelled)", spec.name)
            return RenditionResult(spec=spec, status=RenditionStatus.FAILED, error="cancelled")
        try:
            return self._encoder.encode(source_path, spec, janitor, cancel_event=cancel_event)
        except EncodeError as e:
            logger.warning("transcode: %s failed: %s", spec.name, e.cause)
            return RenditionResult(spec=spec, status=RenditionStatus.FAILED, error=e.cause)
