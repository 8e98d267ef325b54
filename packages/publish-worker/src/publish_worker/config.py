"""
App config from environment with defaults.
Uses pydantic-settings so all env vars are validated and documented in one model.
"""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _clamp(v: object, low: int, high: int, default: int) -> int:
    if isinstance(v, int):
        return max(low, min(v, high))
    if isinstance(v, str):
        try:
            return max(low, min(int(v), high))
        except ValueError:
            return default
    return default


class PublishWorkerSettings(BaseSettings):
    """
    All environment variables used by the publish worker.
    Env vars are read from os.environ (UPPER_SNAKE_CASE by default).
    """

    model_config = SettingsConfigDict(extra="ignore")

    # Encoding is CPU/process-bound, uploading is network-bound: separate caps
    encode_max_concurrency: int = 2
    upload_max_concurrency: int = 4

    # Per-rendition upper bound for one ffmpeg run
    encode_timeout_seconds: int = 1800

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Parent directory for per-run temp dirs (default: system temp dir)
    work_dir_root: str | None = None

    videos_folder: str = "videos"
    thumbnails_folder: str = "thumbnails"

    # Optional JSON list of rendition specs overriding the built-in catalog
    rendition_catalog_json: str | None = None

    @field_validator("encode_max_concurrency", mode="before")
    @classmethod
    def parse_and_clamp_encode(cls, v: object) -> int:
        return _clamp(v, 1, 16, 2)

    @field_validator("upload_max_concurrency", mode="before")
    @classmethod
    def parse_and_clamp_upload(cls, v: object) -> int:
        return _clamp(v, 1, 32, 4)

    @field_validator("encode_timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("encode_timeout_seconds must be positive")
        return v


def get_settings() -> PublishWorkerSettings:
    """Return validated settings from current environment."""
    return PublishWorkerSettings()
