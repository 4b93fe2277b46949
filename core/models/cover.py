# =============================================================================
# core/models/cover.py - Cover Image Schemas
# =============================================================================
# These models define the API contract for cover normalization:
# - CoverRequest: Input for normalizing and storing a cover image
# - CoverResponse: Output after the cover has been stored
# - CoverErrorResponse: The single failure shape returned to clients
# - CoverTaskResponse: Output when a cover job is queued for a worker
# - PipelineStage / CoverErrorKind: Enums for the normalization pipeline
#
# A cover is the portrait image shown on a business card in the directory.
# One cover exists per business; uploading again replaces it.
# =============================================================================

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PipelineStage(str, Enum):
    """
    Stages of one normalization call.

    Flow: acquiring -> decoding -> cropping -> compressing -> persisting -> done
    Any failure moves straight to failed; nothing is retried.
    """
    ACQUIRING = "acquiring"
    DECODING = "decoding"
    CROPPING = "cropping"
    COMPRESSING = "compressing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class CoverErrorKind(str, Enum):
    """
    Failure causes of the normalization pipeline.

    Clients only ever see the generic error payload; the kind is kept
    for logging, worker results and tests.
    """
    FETCH = "fetch"
    DECODE = "decode"
    INPUT_TOO_LARGE = "input_too_large"
    TIMEOUT = "timeout"
    STORAGE = "storage"
    RECORD_UPDATE = "record_update"


class CoverRequest(BaseModel):
    """
    Schema for a cover normalization request.

    The admin form posts the image preview it holds, which is either the
    existing public URL or a freshly picked file as a data URI.

    Example:
        {
            "imageData": "data:image/png;base64,iVBORw0KGgo...",
            "identifier": "550e8400-e29b-41d4-a716-446655440000"
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    # URL or base64 (optionally data-URI prefixed) image
    image_data: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("imageData", "image_data"),
        serialization_alias="imageData",
        description="HTTP(S) URL or base64 data URI of the source image"
    )

    # Storage key and business row id; opaque to this service
    identifier: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("identifier", "businessId"),
        description="Business record identifier the cover belongs to"
    )


class CoverResponse(BaseModel):
    """
    Schema returned after a cover has been stored.

    Example:
        {
            "success": true,
            "url": "https://xxx.supabase.co/storage/v1/object/public/cactux/covers/550e8400.webp",
            "message": "Image processed and saved successfully"
        }
    """

    success: bool = True
    url: str = Field(..., description="Public URL of the stored cover")
    message: str = "Image processed and saved successfully"


class CoverErrorResponse(BaseModel):
    """Generic failure payload; every pipeline error collapses to this."""
    error: str = "Failed to process image"
    details: str = ""


class CoverTaskResponse(BaseModel):
    """Response model for a queued cover job."""
    task_id: str
    status: str
    message: str
