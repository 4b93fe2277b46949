# =============================================================================
# core/services/cover_service.py - Cover Normalization Pipeline
# =============================================================================
# Runs one cover through the full pipeline:
#
#   acquiring -> decoding -> cropping -> compressing -> persisting -> done
#
# 1. Acquire bytes from a URL or base64 string (ImageSourceService)
# 2. Decode them with Pillow
# 3. Crop to a centred 3:4 rectangle and fit inside 900x1200
# 4. Re-encode as WebP until the cover fits the byte budget
# 5. Upsert covers/<identifier>.webp, resolve its public URL and point the
#    business record at it
#
# Any failure aborts the remaining stages and propagates as a
# CoverPipelineError. Nothing is retried.
# =============================================================================

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from PIL import Image

from core.exceptions import CoverPipelineError, DecodeError
from core.imaging.compression import (
    WEBP_CONTENT_TYPE,
    WEBP_EXTENSION,
    CompressionPolicy,
    CompressionResult,
    compress_to_budget,
    prepare_for_webp,
)
from core.imaging.geometry import (
    DEFAULT_MAX_HEIGHT,
    DEFAULT_MAX_WIDTH,
    CropRect,
    compute_crop,
    compute_resize_target,
)
from core.models.cover import PipelineStage
from core.services.image_source_service import ImageSourceService
from core.services.record_service import RecordService
from core.services.storage_service import StorageService

if TYPE_CHECKING:
    from supabase import Client

    from app.config import Settings

logger = logging.getLogger(__name__)

# Folder inside the bucket that holds covers
COVER_FOLDER = "covers"


@dataclass(frozen=True)
class RenderedCover:
    """Output of the in-memory part of the pipeline."""
    source_width: int
    source_height: int
    crop: CropRect
    target_width: int
    target_height: int
    compression: CompressionResult


@dataclass(frozen=True)
class NormalizedCover:
    """A stored cover and the facts about how it was produced."""
    identifier: str
    path: str
    url: str
    content_type: str
    size_bytes: int
    width: int
    height: int
    quality: int
    iterations: int
    within_budget: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "path": self.path,
            "url": self.url,
            "content_type": self.content_type,
            "size_bytes": self.size_bytes,
            "width": self.width,
            "height": self.height,
            "quality": self.quality,
            "iterations": self.iterations,
            "within_budget": self.within_budget,
        }


class CoverService:
    """
    Normalizes cover images and stores them for a business record.

    All collaborators are injected; use from_settings() to build the
    production wiring.

    Example:
        service = CoverService.from_settings(settings)
        cover = service.normalize("data:image/png;base64,...", "550e8400-...")
        print(cover.url)
    """

    def __init__(
        self,
        source: ImageSourceService,
        storage: StorageService,
        records: RecordService,
        policy: CompressionPolicy | None = None,
        folder: str = COVER_FOLDER,
        max_width: int = DEFAULT_MAX_WIDTH,
        max_height: int = DEFAULT_MAX_HEIGHT,
    ):
        self.source = source
        self.storage = storage
        self.records = records
        self.policy = policy or CompressionPolicy()
        self.folder = folder.strip("/")
        self.max_width = max_width
        self.max_height = max_height

    @classmethod
    def from_settings(cls, settings: Settings, client: Client | None = None) -> "CoverService":
        """
        Build a CoverService from application settings.

        Args:
            settings: Application settings
            client: Supabase client to use (created from settings if omitted)
        """
        if client is None:
            from lib.supabase_client import create_supabase_client

            client = create_supabase_client(settings)

        return cls(
            source=ImageSourceService(
                timeout=settings.COVER_FETCH_TIMEOUT_SECONDS,
                max_bytes=settings.max_input_bytes,
            ),
            storage=StorageService(client, bucket=settings.SUPABASE_BUCKET),
            records=RecordService(
                client,
                table=settings.RECORD_TABLE,
                image_field=settings.RECORD_IMAGE_FIELD,
            ),
            policy=CompressionPolicy.from_settings(settings),
            folder=settings.COVER_FOLDER,
            max_width=settings.COVER_MAX_WIDTH,
            max_height=settings.COVER_MAX_HEIGHT,
        )

    def cover_path(self, identifier: str) -> str:
        """Storage path of the cover for identifier, e.g. covers/<id>.webp."""
        return f"{self.folder}/{identifier}.{WEBP_EXTENSION}"

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    def normalize(self, image_data: str, identifier: str) -> NormalizedCover:
        """
        Run the full pipeline for one cover.

        Args:
            image_data: HTTP(S) URL or base64 (data URI) image
            identifier: Business record id; also the storage file name

        Returns:
            NormalizedCover describing the stored artifact

        Raises:
            CoverPipelineError: Subclass describing the failed stage
        """
        logger.info(f"Normalizing cover for {identifier}")

        try:
            logger.debug(f"[{identifier}] stage={PipelineStage.ACQUIRING.value}")
            source_bytes = self.source.acquire(image_data)

            rendered = self.render(source_bytes, identifier=identifier)

            logger.debug(f"[{identifier}] stage={PipelineStage.PERSISTING.value}")
            path, url = self.persist(identifier, rendered.compression.data)

        except CoverPipelineError as e:
            logger.error(
                f"[{identifier}] stage={PipelineStage.FAILED.value} "
                f"failed_at={e.stage.value} kind={e.kind.value}: {e.message}"
            )
            raise

        compression = rendered.compression
        logger.info(
            f"[{identifier}] stage={PipelineStage.DONE.value} stored {path} "
            f"({compression.width}x{compression.height}, q={compression.quality}, "
            f"{compression.size_bytes / 1024:.1f}KB, {compression.iterations} attempts)"
        )

        return NormalizedCover(
            identifier=identifier,
            path=path,
            url=url,
            content_type=WEBP_CONTENT_TYPE,
            size_bytes=compression.size_bytes,
            width=compression.width,
            height=compression.height,
            quality=compression.quality,
            iterations=compression.iterations,
            within_budget=compression.within_budget,
        )

    def render(self, source_bytes: bytes, identifier: str = "-") -> RenderedCover:
        """
        Decode, crop and compress source_bytes without touching storage.

        Raises:
            DecodeError: If source_bytes is not a decodable image
            CompressionTimeoutError: If the compression loop runs too long
        """
        logger.debug(f"[{identifier}] stage={PipelineStage.DECODING.value}")
        image = self._decode(source_bytes)

        try:
            logger.debug(f"[{identifier}] stage={PipelineStage.CROPPING.value}")
            source_width, source_height = image.size
            crop = compute_crop(source_width, source_height)
            target_width, target_height = compute_resize_target(
                crop.width,
                crop.height,
                max_width=self.max_width,
                max_height=self.max_height,
            )
            logger.debug(
                f"[{identifier}] source {source_width}x{source_height} -> crop {crop} "
                f"-> target {target_width}x{target_height}"
            )

            try:
                cropped = prepare_for_webp(image.crop(crop.box))
            except (OSError, ValueError) as e:
                raise DecodeError(str(e), stage=PipelineStage.CROPPING) from e

            try:
                logger.debug(f"[{identifier}] stage={PipelineStage.COMPRESSING.value}")
                compression = compress_to_budget(
                    cropped,
                    target_width,
                    target_height,
                    policy=self.policy,
                )
            finally:
                cropped.close()
        finally:
            image.close()

        return RenderedCover(
            source_width=source_width,
            source_height=source_height,
            crop=crop,
            target_width=target_width,
            target_height=target_height,
            compression=compression,
        )

    def persist(self, identifier: str, data: bytes) -> tuple[str, str]:
        """
        Upsert the cover, resolve its URL and update the business record.

        Returns:
            (storage path, public URL)

        Raises:
            StorageError: If the upload or URL lookup fails
            RecordUpdateError: If the record update fails
        """
        path = self.cover_path(identifier)
        self.storage.put(path, data, WEBP_CONTENT_TYPE, upsert=True)
        url = self.storage.public_url_of(path)
        self.records.update_record_image_field(identifier, url)
        return path, url

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _decode(source_bytes: bytes) -> Image.Image:
        """Open and fully load source_bytes with Pillow."""
        image: Image.Image | None = None
        try:
            image = Image.open(io.BytesIO(source_bytes))
            image.load()
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
            if image is not None:
                image.close()
            raise DecodeError(str(e) or type(e).__name__) from e

        if image.width < 1 or image.height < 1:
            image.close()
            raise DecodeError(f"image has no pixels ({image.width}x{image.height})")
        return image
