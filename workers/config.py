# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Settings specific to Celery workers.
# =============================================================================

from app.config import settings


class CeleryConfig:
    """
    Celery configuration settings.

    These are applied to the Celery app via app.config_from_object().
    """

    # -------------------------------------------------------------------------
    # Broker Settings (Redis)
    # -------------------------------------------------------------------------

    # Redis URL for message broker
    broker_url = settings.REDIS_URL

    # Redis URL for result backend (store task results)
    result_backend = settings.REDIS_URL

    # -------------------------------------------------------------------------
    # Task Settings
    # -------------------------------------------------------------------------

    # Acknowledge tasks after they complete (not before)
    task_acks_late = True

    # Only prefetch one task at a time; covers are CPU-bound
    worker_prefetch_multiplier = 1

    # Task results expire after 1 hour
    result_expires = 3600

    # Hard limit: fetch timeout + compression bound + upload headroom
    task_time_limit = int(
        settings.COVER_FETCH_TIMEOUT_SECONDS + settings.COVER_COMPRESS_TIMEOUT_SECONDS + 60
    )

    # Soft limit fires first; normalize_cover_task turns it into a timeout result
    task_soft_time_limit = task_time_limit - 15

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    # Use JSON for task serialization (safer than pickle)
    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    # -------------------------------------------------------------------------
    # Task Routing
    # -------------------------------------------------------------------------

    # Define task queues
    task_queues = {
        "default": {
            "exchange": "default",
            "routing_key": "default",
        },
        "images": {
            "exchange": "images",
            "routing_key": "images",
        },
    }

    # Route image tasks to dedicated queue
    task_routes = {
        "workers.tasks.normalize_cover": {"queue": "images"},
    }

    # Default queue for unrouted tasks
    task_default_queue = "default"

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    # Send task events for monitoring (Flower, etc.)
    worker_send_task_events = True
    task_send_sent_event = True

    # -------------------------------------------------------------------------
    # Timezone
    # -------------------------------------------------------------------------

    timezone = "UTC"
    enable_utc = True
