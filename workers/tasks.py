# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Defines background tasks for cover processing.
#
# Tasks:
# - normalize_cover: Full cover pipeline (acquire -> crop -> compress -> store)
# =============================================================================

import logging
from typing import Any

from celery import shared_task, current_task
from celery.exceptions import SoftTimeLimitExceeded

logger = logging.getLogger(__name__)


# =============================================================================
# Task State Updates
# =============================================================================

def update_progress(current: int, total: int, message: str = "Processing..."):
    """
    Update task progress for polling.

    Args:
        current: Current step number
        total: Total steps
        message: Status message
    """
    if current_task:
        current_task.update_state(
            state="PROGRESS",
            meta={
                "current": current,
                "total": total,
                "percent": int((current / total) * 100),
                "message": message,
            }
        )


# =============================================================================
# Cover Processing Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.normalize_cover")
def normalize_cover_task(
    self,
    image_data: str,
    identifier: str,
) -> dict[str, Any]:
    """
    Normalize and store a cover image on a worker.

    Runs the same pipeline as POST /api/v1/covers. Pipeline failures are
    returned, not raised, so the poller gets the same generic failure
    shape as the HTTP endpoint plus the error kind. Nothing is retried.

    Args:
        image_data: HTTP(S) URL or base64 (data URI) image
        identifier: Business record id

    Returns:
        Dict with:
        - success: bool
        - url: Public cover URL (if successful)
        - cover: Stored cover facts (if successful)
        - error / details / kind / stage (if failed)
    """
    from app.config import settings
    from core.exceptions import CoverPipelineError
    from core.models.cover import CoverErrorKind, PipelineStage
    from core.services.cover_service import CoverService

    logger.info(f"Processing cover for {identifier}")
    update_progress(1, 2, "Normalizing cover...")

    service = CoverService.from_settings(settings)

    try:
        cover = service.normalize(image_data, identifier)
    except CoverPipelineError as e:
        logger.error(f"Cover task failed for {identifier}: {e.message}")
        return {
            "success": False,
            "error": "Failed to process image",
            "details": e.message,
            "kind": e.kind.value,
            "stage": e.stage.value,
        }
    except SoftTimeLimitExceeded:
        logger.error(f"Cover task for {identifier} hit the soft time limit")
        return {
            "success": False,
            "error": "Failed to process image",
            "details": "Cover job exceeded the worker time limit",
            "kind": CoverErrorKind.TIMEOUT.value,
            "stage": PipelineStage.FAILED.value,
        }

    update_progress(2, 2, "Stored")
    return {
        "success": True,
        "url": cover.url,
        "message": "Image processed and saved successfully",
        "cover": cover.to_dict(),
    }
