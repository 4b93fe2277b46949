# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - cover.py: Cover request/response schemas and pipeline enums
#
# These models define the "contract" between API and clients.
# =============================================================================

from .cover import (
    CoverErrorKind,
    CoverErrorResponse,
    CoverRequest,
    CoverResponse,
    CoverTaskResponse,
    PipelineStage,
)

__all__ = [
    "CoverErrorKind",
    "CoverErrorResponse",
    "CoverRequest",
    "CoverResponse",
    "CoverTaskResponse",
    "PipelineStage",
]
