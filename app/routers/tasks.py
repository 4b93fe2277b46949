# =============================================================================
# app/routers/tasks.py - Cover Job Status Endpoints
# =============================================================================
# Reports on cover jobs queued through POST /api/v1/covers/async.
#
# A cover job has two layers of outcome:
# - the Celery state (PENDING, STARTED, PROGRESS, SUCCESS, FAILURE)
# - the cover outcome, carried in the task's return value
#
# normalize_cover_task returns a failure dict instead of raising when the
# pipeline rejects an image, so Celery records SUCCESS for those jobs. The
# endpoints here read the dict and report such covers as failed.
# =============================================================================

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Path, HTTPException
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter()

TaskIdPath = Annotated[str, Path(description="Celery task ID returned by POST /covers/async")]

# Celery states that will not change again
FINISHED_STATES = ("SUCCESS", "FAILURE", "REVOKED")


# =============================================================================
# Response Models
# =============================================================================

class CoverJobStatus(BaseModel):
    """Status of a queued cover job."""
    task_id: str
    status: str
    progress: int | None = None
    message: str | None = None
    url: str | None = None
    error: str | None = None
    details: str | None = None
    result: dict | None = None


# =============================================================================
# Helpers
# =============================================================================

def _load_result(task_id: str):
    from workers.celery_app import celery_app

    return celery_app.AsyncResult(task_id)


def _describe(task_id: str, result) -> CoverJobStatus:
    """Translate a Celery AsyncResult into a CoverJobStatus."""
    state = result.status
    job = CoverJobStatus(task_id=task_id, status=state)

    if state == "SUCCESS":
        payload: dict[str, Any] = result.result if isinstance(result.result, dict) else {}
        job.result = payload
        job.progress = 100
        if payload.get("success"):
            job.url = payload.get("url")
            job.message = payload.get("message", "Complete")
        else:
            job.error = payload.get("error", "Failed to process image")
            job.details = payload.get("details", "")
            job.message = "Failed"

    elif state == "PROGRESS":
        info = result.info or {}
        job.progress = info.get("percent", 0)
        job.message = info.get("message", "Processing...")

    elif state in ("FAILURE", "REVOKED"):
        job.error = "Failed to process image"
        job.details = str(result.result) if result.result else state.lower()
        job.message = "Failed"

    else:
        job.progress = 0
        job.message = "Waiting in queue..." if state == "PENDING" else "Starting..."

    return job


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/{task_id}", response_model=CoverJobStatus, response_model_exclude_none=True)
async def get_task_status(task_id: TaskIdPath):
    """
    Get the status of a cover job.

    - PENDING / STARTED: waiting for or picked up by a worker
    - PROGRESS: running; message names the current step
    - SUCCESS: finished; url is set when the cover was stored, otherwise
      error and details describe why the image was rejected
    - FAILURE: the worker crashed or hit its time limit
    """
    try:
        result = _load_result(task_id)
    except Exception as e:
        logger.error(f"Error getting status of cover job {task_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get task status: {e}")

    return _describe(task_id, result)


@router.get("/{task_id}/result")
async def get_task_result(task_id: TaskIdPath):
    """
    Get the outcome of a finished cover job.

    Stored covers return the same body as POST /api/v1/covers. Rejected
    covers return the same error body as that endpoint. Unfinished jobs
    return their status.
    """
    try:
        result = _load_result(task_id)
    except Exception as e:
        logger.error(f"Error getting result of cover job {task_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get task result: {e}")

    job = _describe(task_id, result)

    if job.status not in FINISHED_STATES:
        return {
            "task_id": task_id,
            "status": job.status,
            "message": "Task not yet complete",
        }

    if job.url:
        return {
            "task_id": task_id,
            "success": True,
            "url": job.url,
            "message": job.message,
        }

    return {
        "task_id": task_id,
        "error": job.error,
        "details": job.details,
    }


@router.delete("/{task_id}")
async def cancel_task(task_id: TaskIdPath):
    """
    Cancel a cover job that has not finished yet.

    A job already picked up by a worker is terminated; the cover it was
    writing may or may not have been stored.
    """
    try:
        result = _load_result(task_id)

        if result.status in FINISHED_STATES:
            return {
                "task_id": task_id,
                "message": f"Task already {result.status.lower()}, cannot cancel",
                "cancelled": False,
            }

        result.revoke(terminate=True)

    except Exception as e:
        logger.error(f"Error cancelling cover job {task_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to cancel task: {e}")

    logger.info(f"Cancelled cover job {task_id}")
    return {
        "task_id": task_id,
        "message": "Task cancelled",
        "cancelled": True,
    }
