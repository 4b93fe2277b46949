# =============================================================================
# core/imaging/ - Cover Image Processing
# =============================================================================
# - geometry.py: crop rectangle and resize target arithmetic
# - compression.py: WebP encoding and the byte-budget compression loop
# =============================================================================

from .geometry import (
    COVER_ASPECT_RATIO,
    CropRect,
    compute_crop,
    compute_resize_target,
)
from .compression import (
    WEBP_CONTENT_TYPE,
    WEBP_EXTENSION,
    CompressionAttempt,
    CompressionPolicy,
    CompressionResult,
    compress_to_budget,
    encode_webp,
    prepare_for_webp,
)

__all__ = [
    "COVER_ASPECT_RATIO",
    "CropRect",
    "compute_crop",
    "compute_resize_target",
    "WEBP_CONTENT_TYPE",
    "WEBP_EXTENSION",
    "CompressionAttempt",
    "CompressionPolicy",
    "CompressionResult",
    "compress_to_budget",
    "encode_webp",
    "prepare_for_webp",
]
