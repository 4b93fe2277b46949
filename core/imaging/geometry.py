# =============================================================================
# core/imaging/geometry.py - Crop and Resize Geometry
# =============================================================================
# Pure pixel arithmetic for cover images, no Pillow involved:
# - compute_crop: centred crop rectangle matching the target aspect ratio
# - compute_resize_target: largest size that fits the bounds (never upscales)
#
# Covers are portrait 3:4 (width:height) and at most 900x1200.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass

from lib.utils import round_half_up

# Width / height of a cover
COVER_ASPECT_RATIO = 3 / 4

DEFAULT_MAX_WIDTH = 900
DEFAULT_MAX_HEIGHT = 1200


@dataclass(frozen=True)
class CropRect:
    """
    Region extracted from the source image before resizing.

    Coordinates are in source pixels; (left, top) is the upper-left corner.
    """
    left: int
    top: int
    width: int
    height: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        """The rectangle as a Pillow (left, upper, right, lower) box."""
        return (self.left, self.top, self.left + self.width, self.top + self.height)


def compute_crop(
    width: int,
    height: int,
    target_ratio: float = COVER_ASPECT_RATIO,
) -> CropRect:
    """
    Compute the centred crop of a width x height image at target_ratio.

    Images wider than the target keep their full height and lose width
    evenly on both sides; all others keep their full width and lose
    height evenly at top and bottom.

    Args:
        width: Source width in pixels (>= 1)
        height: Source height in pixels (>= 1)
        target_ratio: Desired width / height

    Returns:
        CropRect inside the source bounds

    Raises:
        ValueError: If either dimension is < 1

    Example:
        compute_crop(4000, 3000)  # CropRect(left=875, top=0, width=2250, height=3000)
        compute_crop(600, 1000)   # CropRect(left=0, top=100, width=600, height=800)
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    if width / height > target_ratio:
        crop_width = min(width, max(1, round_half_up(height * target_ratio)))
        left = (width - crop_width) // 2
        return CropRect(left=left, top=0, width=crop_width, height=height)

    crop_height = min(height, max(1, round_half_up(width / target_ratio)))
    top = (height - crop_height) // 2
    return CropRect(left=0, top=top, width=width, height=crop_height)


def compute_resize_target(
    crop_width: int,
    crop_height: int,
    max_width: int = DEFAULT_MAX_WIDTH,
    max_height: int = DEFAULT_MAX_HEIGHT,
) -> tuple[int, int]:
    """
    Fit a crop inside max_width x max_height, preserving its aspect ratio.

    Only downscales; a crop that already fits is returned unchanged.

    Example:
        compute_resize_target(2250, 3000)  # (900, 1200)
        compute_resize_target(600, 800)    # (600, 800)
    """
    scale = min(max_width / crop_width, max_height / crop_height)
    if scale >= 1:
        return crop_width, crop_height

    return (
        max(1, round_half_up(crop_width * scale)),
        max(1, round_half_up(crop_height * scale)),
    )
