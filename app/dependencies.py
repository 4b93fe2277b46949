# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends(), and replaced in
# tests through app.dependency_overrides.
# =============================================================================

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from supabase import Client

from app.config import settings
from core.services.cover_service import CoverService
from lib.supabase_client import create_supabase_client


@lru_cache
def get_supabase_client() -> Client:
    """
    Get the Supabase client instance.

    Created on first use and reused for the life of the process.
    """
    return create_supabase_client(settings)


def get_cover_service(
    client: Annotated[Client, Depends(get_supabase_client)],
) -> CoverService:
    """
    Build the cover pipeline for a request.

    The service itself is stateless; only the client is shared.
    """
    return CoverService.from_settings(settings, client=client)


# Type alias for dependency injection
CoverServiceDep = Annotated[CoverService, Depends(get_cover_service)]
