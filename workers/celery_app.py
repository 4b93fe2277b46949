# =============================================================================
# workers/celery_app.py - Celery Application Configuration
# =============================================================================
# This module creates the Celery application that runs queued cover jobs.
#
# Usage:
#   # Start worker (cover jobs are routed to the "images" queue)
#   celery -A workers.celery_app worker -Q images,default --loglevel=info
#
#   # Check status
#   celery -A workers.celery_app status
# =============================================================================

import logging

from celery import Celery
from celery.signals import task_prerun, task_postrun, task_failure

from app.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def redact_credentials(url: str) -> str:
    """Drop the user:password part of a broker URL for logging."""
    return url.split("@")[-1] if "@" in url else url


def create_celery_app() -> Celery:
    """
    Create the cover worker Celery app.

    Broker and result backend both use settings.REDIS_URL, so the API and
    the worker read the same .env.
    """
    app = Celery(
        "cover_worker",
        broker=settings.REDIS_URL,
        backend=settings.REDIS_URL,
        include=["workers.tasks"],
    )
    app.config_from_object("workers.config:CeleryConfig")

    logger.info(f"Celery app created with broker: {redact_credentials(settings.REDIS_URL)}")
    return app


celery_app = create_celery_app()


# =============================================================================
# Celery Signals (Lifecycle Hooks)
# =============================================================================
# Cover jobs are called as normalize_cover_task(image_data, identifier);
# the identifier is logged, never the image data.

def cover_identifier(args=None, kwargs=None) -> str:
    """Business id of a cover job from its call arguments."""
    if kwargs and "identifier" in kwargs:
        return str(kwargs["identifier"])
    if args and len(args) > 1:
        return str(args[1])
    return "-"


@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, **extra):
    """Log which business a job is working on."""
    logger.info(f"Task started: {task.name} [{task_id}] identifier={cover_identifier(args, kwargs)}")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None,
                         retval=None, state=None, **extra):
    """Log the cover outcome, which can be a failure even when state is SUCCESS."""
    identifier = cover_identifier(args, kwargs)

    if isinstance(retval, dict) and retval.get("success") is False:
        logger.warning(
            f"Task finished without a cover: {task.name} [{task_id}] identifier={identifier} "
            f"kind={retval.get('kind')} - {retval.get('details')}"
        )
    else:
        logger.info(f"Task completed: {task.name} [{task_id}] identifier={identifier} - State: {state}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, args=None, kwargs=None,
                         **extra):
    """Log when a job crashes."""
    logger.error(
        f"Task failed: {sender.name} [{task_id}] identifier={cover_identifier(args, kwargs)} "
        f"- Error: {exception}"
    )


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    celery_app.start()
