# =============================================================================
# core/exceptions.py - Cover Pipeline Errors
# =============================================================================
# Every failure of the normalization pipeline raises a subclass of
# CoverPipelineError. Each error knows:
# - kind: which CoverErrorKind it is (so callers can branch on the cause)
# - stage: which PipelineStage was running when it happened
#
# The HTTP layer collapses all of them into one generic payload; workers
# and tests use the kind.
# =============================================================================

from typing import Any

from core.models.cover import CoverErrorKind, PipelineStage
from lib.utils import ApplicationError


class CoverPipelineError(ApplicationError):
    """Base class for cover normalization failures."""

    kind: CoverErrorKind
    default_stage: PipelineStage

    def __init__(
        self,
        message: str,
        stage: PipelineStage | None = None,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message,
            code=f"COVER_{self.kind.name}_ERROR",
            suggestion=suggestion,
            details=details,
        )
        self.stage = stage or self.default_stage

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["kind"] = self.kind.value
        result["stage"] = self.stage.value
        return result


class FetchError(CoverPipelineError):
    """Raised when a source image URL cannot be retrieved."""

    kind = CoverErrorKind.FETCH
    default_stage = PipelineStage.ACQUIRING

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Failed to fetch image: {reason}",
            suggestion="Check that the URL is publicly reachable and returns an image",
            details={"url": url},
        )


class InputTooLargeError(CoverPipelineError):
    """Raised when the acquired source image exceeds the input size limit."""

    kind = CoverErrorKind.INPUT_TOO_LARGE
    default_stage = PipelineStage.ACQUIRING

    def __init__(self, size_bytes: int, max_bytes: int):
        super().__init__(
            message=f"Image too large: {size_bytes / (1024 * 1024):.1f}MB "
                    f"(max: {max_bytes / (1024 * 1024):.0f}MB)",
            suggestion="Upload a smaller image or raise COVER_MAX_INPUT_MB",
            details={"size_bytes": size_bytes, "max_bytes": max_bytes},
        )


class DecodeError(CoverPipelineError):
    """Raised when the source bytes are not a decodable image."""

    kind = CoverErrorKind.DECODE
    default_stage = PipelineStage.DECODING

    def __init__(self, reason: str, stage: PipelineStage | None = None):
        super().__init__(
            message=f"Failed to decode image: {reason}",
            stage=stage,
            suggestion="Send a valid image as a URL or a base64 data URI",
        )


class CompressionTimeoutError(CoverPipelineError):
    """Raised when the compression loop exceeds its wall-clock bound."""

    kind = CoverErrorKind.TIMEOUT
    default_stage = PipelineStage.COMPRESSING

    def __init__(self, elapsed_seconds: float, iterations: int):
        super().__init__(
            message=f"Compression did not finish within {elapsed_seconds:.1f}s "
                    f"({iterations} attempts)",
            suggestion="Try a smaller source image or raise COVER_COMPRESS_TIMEOUT_SECONDS",
            details={"elapsed_seconds": elapsed_seconds, "iterations": iterations},
        )


class StorageError(CoverPipelineError):
    """Raised when the cover cannot be written or its URL retrieved."""

    kind = CoverErrorKind.STORAGE
    default_stage = PipelineStage.PERSISTING

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Failed to store cover: {reason}",
            suggestion="Check that the storage bucket exists and the service key can write to it",
            details={"path": path},
        )


class RecordUpdateError(CoverPipelineError):
    """Raised when the business record cannot be pointed at the new cover."""

    kind = CoverErrorKind.RECORD_UPDATE
    default_stage = PipelineStage.PERSISTING

    def __init__(self, identifier: str, reason: str):
        super().__init__(
            message=f"Failed to update record {identifier}: {reason}",
            suggestion="Check that the record exists and the image column is writable",
            details={"identifier": identifier},
        )
