# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - covers.py: Cover image normalization endpoints
# - tasks.py: Background task status endpoints
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import covers
from . import tasks

__all__ = [
    "health",
    "covers",
    "tasks",
]
