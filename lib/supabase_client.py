# =============================================================================
# lib/supabase_client.py - Supabase Client Factory
# =============================================================================
# This module creates the Supabase client used by the storage and record
# services. The client is built by a factory and handed to the services that
# need it, so every collaborator can be swapped for a test double.
#
# Usage:
#   from lib.supabase_client import create_supabase_client
#   client = create_supabase_client(settings)
#   storage = StorageService(client, bucket=settings.SUPABASE_BUCKET)
# =============================================================================

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from supabase import create_client, Client

if TYPE_CHECKING:
    from app.config import Settings

# Set up logging for this module
logger = logging.getLogger(__name__)


class SupabaseClientError(Exception):
    """
    Error during Supabase client setup.

    Provides actionable error messages following the principle:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def create_supabase_client(settings: Settings) -> Client:
    """
    Create a Supabase client from application settings.

    Uses the service_role key which bypasses Row Level Security (RLS).
    This is appropriate for server-side operations: the endpoint writes
    to storage and updates business rows on behalf of the admin UI.

    Args:
        settings: Application settings with SUPABASE_URL and SUPABASE_SERVICE_KEY

    Returns:
        Client: A new Supabase client instance

    Raises:
        SupabaseClientError: If client creation fails
    """
    try:
        client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_KEY
        )
    except Exception as e:
        raise SupabaseClientError(
            message=f"Failed to create Supabase client: {e}",
            code="CLIENT_INIT_FAILED",
            suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
        ) from e

    logger.info("Supabase client initialized successfully")
    return client
