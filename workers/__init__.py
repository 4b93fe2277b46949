# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# background cover processing.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (cover normalization)
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker -Q images,default --loglevel=info
#
#   # Submit task (from API)
#   from workers.tasks import normalize_cover_task
#   result = normalize_cover_task.delay(image_data, identifier)
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
