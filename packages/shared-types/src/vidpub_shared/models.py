"""Pydantic models for renditions, published assets, and pipeline bookkeeping."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RenditionStatus(str, Enum):
    """Lifecycle of one encode attempt."""

    PENDING = "pending"
    ENCODING = "encoding"
    ENCODED = "encoded"
    FAILED = "failed"


class TranscodeOutcome(str, Enum):
    """Batch-level result of transcoding one source into every rendition."""

    ALL_SUCCEEDED = "all_succeeded"
    PARTIAL_FAILURE = "partial_failure"
    TOTAL_FAILURE = "total_failure"


class AssetStatus(str, Enum):
    """Lifecycle status of a video asset."""

    DRAFT = "draft"
    PUBLISHING = "publishing"
    READY = "ready"
    FAILED = "failed"


class IngestionStage(str, Enum):
    """Stage of a single ingestion run."""

    INTAKE = "intake"
    TRANSCODING = "transcoding"
    PUBLISHING = "publishing"
    COMMITTING = "committing"
    READY = "ready"
    FAILED = "failed"


class Category(str, Enum):
    """Fixed set of video categories."""

    CODING = "coding"
    SPORTS = "sports"
    GAMING = "gaming"
    MUSIC = "music"
    NEWS = "news"
    TRAVEL = "travel"
    FOOD = "food"
    EDUCATION = "education"
    LIFESTYLE = "lifestyle"
    TECHNOLOGY = "technology"
    FITNESS = "fitness"
    HEALTH = "health"


class RenditionSpec(BaseModel):
    """Target rendition: output dimensions plus encoder knobs."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Rendition name, e.g. 720p")
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    video_codec: str = "libx264"
    crf: int = Field(28, ge=0, le=51, description="Constant rate factor (quality)")
    preset: str = "medium"
    audio_codec: str = "aac"


class RenditionResult(BaseModel):
    """Outcome of one encode attempt for one spec."""

    spec: RenditionSpec
    status: RenditionStatus = RenditionStatus.PENDING
    local_path: Path | None = Field(None, description="Encoded file on local disk")
    duration_seconds: float | None = None
    error: str | None = Field(None, description="Failure cause when status=failed")


class TranscodeBatch(BaseModel):
    """All rendition results for one source (catalog order) and the batch outcome."""

    results: list[RenditionResult]
    outcome: TranscodeOutcome

    def failed(self) -> list[RenditionResult]:
        return [r for r in self.results if r.status != RenditionStatus.ENCODED]


class StoredObject(BaseModel):
    """Reference to an uploaded object: public URL plus the id used to delete it."""

    url: str
    object_id: str


class PublishedRendition(BaseModel):
    """A rendition that is durably stored remotely."""

    model_config = ConfigDict(frozen=True)

    spec_name: str
    remote_url: str
    remote_object_id: str
    duration_seconds: float = Field(..., ge=0)


class PublishMetadata(BaseModel):
    """Caller-supplied metadata for a new video (validated by the calling layer)."""

    title: str
    description: str
    owner_id: str
    categories: list[Category] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class VideoAsset(BaseModel):
    """Published video record (Assets table, API)."""

    asset_id: str = Field(..., description="Unique asset identifier")
    owner_id: str
    title: str
    description: str
    thumbnail_url: str | None = None
    thumbnail_object_id: str | None = None
    canonical_video_url: str | None = None
    renditions: list[PublishedRendition] = Field(default_factory=list)
    duration: float | None = Field(None, description="Seconds, from the canonical rendition")
    status: AssetStatus = AssetStatus.DRAFT
    categories: list[Category] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    views: int = Field(0, ge=0)
    is_published: bool = True
    created_at: int | None = Field(None, description="Unix timestamp when asset was created")
    updated_at: int | None = Field(None, description="Unix timestamp of last change")

    @model_validator(mode="after")
    def _ready_asset_is_playable(self) -> "VideoAsset":
        if self.status != AssetStatus.READY:
            return self
        if not self.renditions:
            raise ValueError("a ready asset must have at least one rendition")
        matches = [r for r in self.renditions if r.remote_url == self.canonical_video_url]
        if len(matches) != 1:
            raise ValueError(
                "canonical_video_url must match exactly one rendition of a ready asset"
            )
        return self

    def remote_object_ids(self) -> list[str]:
        """Every remote object referenced by this asset (thumbnail first, then renditions)."""
        ids: list[str] = []
        if self.thumbnail_object_id:
            ids.append(self.thumbnail_object_id)
        ids.extend(r.remote_object_id for r in self.renditions)
        return ids


class TempFileHandle(BaseModel):
    """A local file created during an ingestion run that must be removed at the end."""

    model_config = ConfigDict(frozen=True)

    path: Path
    created_by: str
