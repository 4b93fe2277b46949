# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .cover_service import CoverService, NormalizedCover, RenderedCover
from .image_source_service import ImageSourceService
from .record_service import RecordService
from .storage_service import StorageService

__all__ = [
    "CoverService",
    "NormalizedCover",
    "RenderedCover",
    "ImageSourceService",
    "RecordService",
    "StorageService",
]
