# =============================================================================
# app/routers/covers.py - Cover Image Endpoints
# =============================================================================
# Normalizes a business cover image and stores it:
# - POST /covers: run the pipeline in this process (worker thread)
# - POST /covers/async: queue the pipeline on a Celery worker
#
# main.py also mounts normalize_cover at POST /api, the path the admin
# form posts to.
# =============================================================================

import logging

from fastapi import APIRouter, status
from fastapi.concurrency import run_in_threadpool

from app.dependencies import CoverServiceDep
from app.exceptions import TaskQueueUnavailableError, cover_failure_response
from core.exceptions import CoverPipelineError
from core.models.cover import (
    CoverErrorResponse,
    CoverRequest,
    CoverResponse,
    CoverTaskResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

FAILURE_RESPONSES = {
    500: {"model": CoverErrorResponse, "description": "Image could not be processed or stored"},
}


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/covers", response_model=CoverResponse, responses=FAILURE_RESPONSES)
async def normalize_cover(request: CoverRequest, service: CoverServiceDep):
    """
    Normalize and store a cover image.

    This endpoint:
    1. Acquires the image (downloads a URL or decodes base64)
    2. Crops it to a centred 3:4 portrait rectangle
    3. Fits it inside 900x1200 without upscaling
    4. Re-encodes it as WebP until it is at most 300KB
    5. Upserts covers/<identifier>.webp and points the business at it

    The CPU-bound work runs in a worker thread so other requests keep
    being served. Any failure returns 500 with a diagnostic string.
    """
    try:
        cover = await run_in_threadpool(
            service.normalize,
            request.image_data,
            request.identifier,
        )
    except CoverPipelineError:
        raise
    except Exception as e:
        logger.exception(f"Error processing image for {request.identifier}: {e}")
        return cover_failure_response(e)

    return CoverResponse(url=cover.url)


@router.post(
    "/covers/async",
    response_model=CoverTaskResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def queue_cover(request: CoverRequest):
    """
    Queue a cover for normalization on a background worker.

    Returns a task_id; poll GET /api/v1/tasks/{task_id} for the result,
    which carries the stored cover URL on success.
    """
    try:
        from workers.tasks import normalize_cover_task

        result = normalize_cover_task.delay(request.image_data, request.identifier)

    except Exception as e:
        logger.error(f"Error submitting cover task: {e}")
        raise TaskQueueUnavailableError(str(e))

    logger.info(f"Queued cover task {result.id} for {request.identifier}")
    return CoverTaskResponse(
        task_id=result.id,
        status="PENDING",
        message="Cover queued. Use GET /api/v1/tasks/{task_id} to check status.",
    )
