"""
FFmpeg-based encoder adapter: one source file -> one rendition file on local disk.

The output path is allocated from the run's janitor before ffmpeg starts, so a
crash mid-encode still leaves it as a cleanup candidate. On any failure the
partial output is removed immediately and EncodeError is raised.
"""

from __future__ import annotations

import logging
import math
import subprocess
import threading
import time
from pathlib import Path

from vidpub_shared import EncodeError, RenditionResult, RenditionSpec, RenditionStatus

from .janitor import TempFileJanitor

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 1800
PROBE_TIMEOUT_SEC = 60
# How often the wait loop checks the cancel event and deadline
POLL_INTERVAL_SEC = 0.5
STDERR_TAIL_CHARS = 500


def build_encode_command(
    ffmpeg_path: str,
    source_path: str | Path,
    spec: RenditionSpec,
    output_path: str | Path,
) -> list[str]:
    """ffmpeg argv for one rendition (scale to target size, H.264 at the rendition's CRF)."""
    return [
        ffmpeg_path,
        "-y",
        "-i",
        str(source_path),
        "-vf",
        f"scale={spec.width}:{spec.height}",
        "-c:v",
        spec.video_codec,
        "-preset",
        spec.preset,
        "-crf",
        str(spec.crf),
        "-c:a",
        spec.audio_codec,
        "-movflags",
        "+faststart",
        str(output_path),
    ]


def _stderr_tail(stderr: bytes | str | None) -> str:
    if not stderr:
        return ""
    text = stderr.decode("utf-8", errors="replace") if isinstance(stderr, bytes) else stderr
    return text.strip()[-STDERR_TAIL_CHARS:]


class FfmpegEncoder:
    """Encoder adapter that shells out to ffmpeg/ffprobe."""

    def __init__(
        self,
        *,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        self._ffmpeg_path = ffmpeg_path
        self._ffprobe_path = ffprobe_path
        self._timeout_sec = timeout_sec

    def encode(
        self,
        source_path: str | Path,
        spec: RenditionSpec,
        janitor: TempFileJanitor,
        *,
        cancel_event: threading.Event | None = None,
    ) -> RenditionResult:
        """
        Encode source_path into the rendition described by spec.

        Returns an encoded RenditionResult with local_path and duration_seconds.
        Raises EncodeError on non-zero exit, timeout, cancellation, missing or empty
        output, or an unreadable output duration.
        """
        output_path = janitor.new_path(".mp4", created_by=f"encoder:{spec.name}")
        cmd = build_encode_command(self._ffmpeg_path, source_path, spec, output_path)
        started = time.monotonic()
        logger.info("encoder: %s start -> %s", spec.name, output_path.name)
        try:
            self._run(cmd, spec, cancel_event)
            if not output_path.exists() or output_path.stat().st_size == 0:
                raise EncodeError(spec.name, "encoder produced no output file")
            duration = self.probe_duration(output_path, spec)
        except EncodeError:
            janitor.release(output_path)
            raise
        logger.info(
            "encoder: %s done in %.1fs (duration=%.2fs)",
            spec.name,
            time.monotonic() - started,
            duration,
        )
        return RenditionResult(
            spec=spec,
            status=RenditionStatus.ENCODED,
            local_path=output_path,
            duration_seconds=duration,
        )

    def _run(
        self,
        cmd: list[str],
        spec: RenditionSpec,
        cancel_event: threading.Event | None,
    ) -> None:
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
        except OSError as e:
            raise EncodeError(spec.name, f"could not start {cmd[0]}: {e}") from e
        deadline = time.monotonic() + self._timeout_sec
        while True:
            try:
                _, stderr = proc.communicate(timeout=POLL_INTERVAL_SEC)
                break
            except subprocess.TimeoutExpired:
                if cancel_event is not None and cancel_event.is_set():
                    self._kill(proc)
                    raise EncodeError(spec.name, "cancelled") from None
                if time.monotonic() >= deadline:
                    self._kill(proc)
                    raise EncodeError(
                        spec.name, f"timed out after {self._timeout_sec}s"
                    ) from None
        if proc.returncode != 0:
            raise EncodeError(
                spec.name,
                f"ffmpeg exited with code {proc.returncode}: {_stderr_tail(stderr)}",
            )

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        proc.kill()
        proc.communicate()

    def probe_duration(self, path: str | Path, spec: RenditionSpec) -> float:
        """Read container duration in seconds with ffprobe."""
        cmd = [
            self._ffprobe_path,
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(path),
        ]
        try:
            proc = subprocess.run(
                cmd, capture_output=True, text=True, timeout=PROBE_TIMEOUT_SEC, check=True
            )
        except subprocess.CalledProcessError as e:
            raise EncodeError(spec.name, f"ffprobe failed: {_stderr_tail(e.stderr)}") from e
        except subprocess.TimeoutExpired as e:
            raise EncodeError(spec.name, "ffprobe timed out") from e
        except OSError as e:
            raise EncodeError(spec.name, f"could not start {cmd[0]}: {e}") from e
        try:
            duration = float(proc.stdout.strip())
        except ValueError as e:
            raise EncodeError(spec.name, f"unreadable duration {proc.stdout.strip()!r}") from e
        if not math.isfinite(duration) or duration < 0:
            raise EncodeError(spec.name, f"invalid duration {duration}")
        return duration
