"""
Error taxonomy for the ingestion pipeline.

Callers map these to user-facing responses. Lower-level causes are chained with
``raise ... from exc`` so the original traceback is kept.
"""


class PipelineError(Exception):
    """Base class for every failure surfaced by an ingestion or delete run."""


class IntakeError(PipelineError):
    """The source video could not be read into the run's work directory."""

    def __init__(self, cause: str) -> None:
        super().__init__(f"intake failed: {cause}")
        self.cause = cause


class EncodeError(PipelineError):
    """The external encoder failed, timed out, or produced no output for one rendition."""

    def __init__(self, spec_name: str, cause: str) -> None:
        super().__init__(f"encode {spec_name} failed: {cause}")
        self.spec_name = spec_name
        self.cause = cause


class StorageError(PipelineError):
    """An object store operation failed (network, auth, quota)."""

    def __init__(self, cause: str) -> None:
        super().__init__(cause)
        self.cause = cause


class PublishError(PipelineError):
    """One or more uploads of a publish batch failed; successful ones were compensated."""

    def __init__(self, cause: str) -> None:
        super().__init__(f"publish failed: {cause}")
        self.cause = cause


class PersistenceError(PipelineError):
    """The asset record did not durably commit."""

    def __init__(self, cause: str) -> None:
        super().__init__(f"persist failed: {cause}")
        self.cause = cause


class IngestionCancelled(PipelineError):
    """The caller cancelled an in-flight ingestion."""
