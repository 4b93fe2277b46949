# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: Pydantic schemas and pipeline enums
# - imaging/: Crop geometry and the WebP compression loop
# - services/: Cover pipeline, image acquisition, storage and record updates
# - exceptions.py: Cover pipeline error taxonomy
#
# Code in this package should NOT import from FastAPI or Celery.
# This keeps the logic testable and reusable.
# =============================================================================
