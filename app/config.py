# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# The Settings class validates all values at startup, catching configuration
# errors early rather than at runtime.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # URL and service key are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,  # ... means required (no default)
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_ANON_KEY: str = Field(
        default="",
        description="Supabase anon/public API key (only used by the admin UI)"
    )

    SUPABASE_BUCKET: str = Field(
        default="cactux",
        min_length=1,
        description="Storage bucket that holds cover images"
    )

    RECORD_TABLE: str = Field(
        default="business",
        min_length=1,
        description="Table whose rows point at their cover image"
    )

    RECORD_IMAGE_FIELD: str = Field(
        default="image",
        min_length=1,
        description="Column on RECORD_TABLE that stores the cover URL"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery)
    # -------------------------------------------------------------------------
    # Default to localhost for development

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    # -------------------------------------------------------------------------
    # Cover Normalization
    # -------------------------------------------------------------------------
    # Geometry and byte budget for stored cover images

    COVER_FOLDER: str = Field(
        default="covers",
        min_length=1,
        description="Folder inside the bucket where covers are written"
    )

    COVER_MAX_WIDTH: int = Field(
        default=900,
        ge=1,
        description="Maximum output width in pixels (never upscaled)"
    )

    COVER_MAX_HEIGHT: int = Field(
        default=1200,
        ge=1,
        description="Maximum output height in pixels (never upscaled)"
    )

    COVER_MAX_SIZE_KB: int = Field(
        default=300,
        ge=1,
        description="Byte ceiling for the encoded cover, in KB"
    )

    COVER_MIN_DIMENSION: int = Field(
        default=500,
        ge=1,
        description="Shrinking stops once either side would drop below this"
    )

    COVER_INITIAL_QUALITY: int = Field(
        default=85,
        ge=1,
        le=100,
        description="WebP quality of the first encode"
    )

    COVER_QUALITY_STEP: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Quality decrement between encodes of one dimension tier"
    )

    COVER_RESET_QUALITY: int = Field(
        default=60,
        ge=1,
        le=100,
        description="Quality used after each dimension shrink"
    )

    COVER_SHRINK_FACTOR: float = Field(
        default=0.8,
        gt=0.0,
        lt=1.0,
        description="Scale applied to width and height when quality is exhausted"
    )

    COVER_MAX_ITERATIONS: int = Field(
        default=48,
        ge=1,
        le=1000,
        description="Hard cap on encode attempts per cover"
    )

    COVER_COMPRESS_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0.0,
        description="Wall-clock bound on the compression loop"
    )

    COVER_FETCH_TIMEOUT_SECONDS: float = Field(
        default=15.0,
        gt=0.0,
        description="Timeout for downloading a source image from a URL"
    )

    COVER_MAX_INPUT_MB: int = Field(
        default=25,
        ge=0,
        le=500,
        description="Reject source images larger than this (0 disables the check)"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        # Load from .env file in project root
        env_file=".env",
        env_file_encoding="utf-8",
        # Don't fail if .env doesn't exist (useful for production where
        # env vars are set directly)
        env_ignore_empty=True,
        # Case-sensitive environment variable names
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Handles comma-separated values and strips whitespace.
        Example: "http://localhost:3000, https://myapp.com" -> ["http://localhost:3000", "https://myapp.com"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def max_input_bytes(self) -> int | None:
        """
        Convert COVER_MAX_INPUT_MB to bytes, or None when the check is disabled.
        """
        if self.COVER_MAX_INPUT_MB == 0:
            return None
        return self.COVER_MAX_INPUT_MB * 1024 * 1024

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access. This is the recommended pattern for
    pydantic-settings.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
