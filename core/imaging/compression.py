# =============================================================================
# core/imaging/compression.py - Progressive Cover Compression
# =============================================================================
# Re-encodes a cropped cover as WebP until it fits the byte budget.
#
# Strategy (per dimension tier):
# 1. Encode at the current quality; stop as soon as the result fits
# 2. Otherwise lower quality by one step while quality is above the floor
# 3. Once quality is exhausted, shrink both sides and reset quality
# 4. If a shrink would take either side below the minimum dimension,
#    keep the last (oversized) buffer as a best-effort result
#
# An iteration guard and a wall-clock bound stop pathological inputs.
# =============================================================================

from __future__ import annotations

import io
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from PIL import Image

from core.exceptions import CompressionTimeoutError
from lib.utils import round_half_up

if TYPE_CHECKING:
    from app.config import Settings

logger = logging.getLogger(__name__)

WEBP_CONTENT_TYPE = "image/webp"
WEBP_EXTENSION = "webp"

# Pillow's slowest / smallest WebP method
WEBP_METHOD = 6

Encoder = Callable[[Image.Image, int, int, int], bytes]


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class CompressionPolicy:
    """
    Tunables of the compression loop.

    Quality is lowered by quality_step while it is strictly above
    min_quality, so from 85 the qualities tried are 85, 75, ..., 15, 5.
    After a shrink the next tier starts again at reset_quality.
    """
    max_size_kb: int = 300
    initial_quality: int = 85
    quality_step: int = 10
    min_quality: int = 10
    reset_quality: int = 60
    shrink_factor: float = 0.8
    min_dimension: int = 500
    max_iterations: int = 48
    timeout_seconds: float | None = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompressionPolicy":
        """Build a policy from the COVER_* settings."""
        return cls(
            max_size_kb=settings.COVER_MAX_SIZE_KB,
            initial_quality=settings.COVER_INITIAL_QUALITY,
            quality_step=settings.COVER_QUALITY_STEP,
            reset_quality=settings.COVER_RESET_QUALITY,
            shrink_factor=settings.COVER_SHRINK_FACTOR,
            min_dimension=settings.COVER_MIN_DIMENSION,
            max_iterations=settings.COVER_MAX_ITERATIONS,
            timeout_seconds=settings.COVER_COMPRESS_TIMEOUT_SECONDS,
        )

    @property
    def max_size_bytes(self) -> int:
        return self.max_size_kb * 1024


@dataclass(frozen=True)
class CompressionAttempt:
    """One encode of the loop."""
    width: int
    height: int
    quality: int
    size_bytes: int

    @property
    def size_kb(self) -> float:
        return self.size_bytes / 1024


@dataclass
class CompressionResult:
    """
    The buffer emitted by the loop plus how it got there.

    within_budget is False when the loop gave up (dimension floor or
    iteration guard) and data is the last, oversized encode.
    """
    data: bytes
    width: int
    height: int
    quality: int
    within_budget: bool
    attempts: list[CompressionAttempt] = field(default_factory=list)

    @property
    def iterations(self) -> int:
        return len(self.attempts)

    @property
    def size_bytes(self) -> int:
        return len(self.data)


# =============================================================================
# Encoding
# =============================================================================

def prepare_for_webp(image: Image.Image) -> Image.Image:
    """
    Convert an image to a mode WebP can store.

    Transparency survives as RGBA; everything else becomes RGB.
    """
    if image.mode in ("RGB", "RGBA"):
        return image

    has_alpha = (
        image.mode in ("LA", "PA", "La", "RGBa")
        or (image.mode == "P" and "transparency" in image.info)
    )
    return image.convert("RGBA" if has_alpha else "RGB")


def encode_webp(image: Image.Image, width: int, height: int, quality: int) -> bytes:
    """
    Resize image to width x height and encode it as lossy WebP.

    Args:
        image: Cropped source image (RGB or RGBA)
        width: Output width in pixels
        height: Output height in pixels
        quality: WebP quality (0-100)

    Returns:
        Encoded WebP bytes
    """
    if image.size != (width, height):
        frame = image.resize((width, height), Image.Resampling.LANCZOS)
    else:
        frame = image

    buffer = io.BytesIO()
    try:
        frame.save(buffer, format="WEBP", quality=quality, method=WEBP_METHOD)
    finally:
        if frame is not image:
            frame.close()
    return buffer.getvalue()


# =============================================================================
# Compression Loop
# =============================================================================

def compress_to_budget(
    image: Image.Image,
    width: int,
    height: int,
    policy: CompressionPolicy | None = None,
    encoder: Encoder = encode_webp,
    clock: Callable[[], float] = time.monotonic,
) -> CompressionResult:
    """
    Encode image at width x height, lowering quality and then size until
    the result fits policy.max_size_kb.

    Args:
        image: Cropped source image, already in a WebP-compatible mode
        width: Initial output width (the resize target; never exceeded)
        height: Initial output height (the resize target; never exceeded)
        policy: Loop tunables (defaults are the production cover limits)
        encoder: Function producing encoded bytes for (image, w, h, quality)
        clock: Monotonic clock used for the wall-clock bound

    Returns:
        CompressionResult with the emitted buffer

    Raises:
        CompressionTimeoutError: If policy.timeout_seconds elapses before the
            loop settles

    Example:
        result = compress_to_budget(cropped, 900, 1200)
        if not result.within_budget:
            logger.warning("Stored oversized cover")
    """
    policy = policy or CompressionPolicy()
    quality = policy.initial_quality
    attempts: list[CompressionAttempt] = []
    started = clock()

    while True:
        data = encoder(image, width, height, quality)
        attempt = CompressionAttempt(width=width, height=height, quality=quality, size_bytes=len(data))
        attempts.append(attempt)
        logger.debug(
            f"Encoded {width}x{height} at quality {quality}: {attempt.size_kb:.1f}KB"
        )

        if attempt.size_kb <= policy.max_size_kb:
            return CompressionResult(data, width, height, quality, True, attempts)

        if len(attempts) >= policy.max_iterations:
            logger.warning(
                f"Compression stopped after {len(attempts)} attempts at "
                f"{attempt.size_kb:.1f}KB (limit {policy.max_size_kb}KB)"
            )
            return CompressionResult(data, width, height, quality, False, attempts)

        elapsed = clock() - started
        if policy.timeout_seconds is not None and elapsed >= policy.timeout_seconds:
            raise CompressionTimeoutError(elapsed, len(attempts))

        if quality > policy.min_quality:
            quality -= policy.quality_step
            continue

        next_width = round_half_up(width * policy.shrink_factor)
        next_height = round_half_up(height * policy.shrink_factor)
        if next_width < policy.min_dimension or next_height < policy.min_dimension:
            logger.warning(
                f"Reached minimum dimension at {width}x{height}; "
                f"keeping {attempt.size_kb:.1f}KB cover (limit {policy.max_size_kb}KB)"
            )
            return CompressionResult(data, width, height, quality, False, attempts)

        width, height = next_width, next_height
        quality = policy.reset_quality
