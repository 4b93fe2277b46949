# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Cover Image API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    CoverApiException,
    cover_api_exception_handler,
    cover_pipeline_exception_handler,
    supabase_client_exception_handler,
    validation_exception_handler,
)
from app.routers import covers, health, tasks
from core.exceptions import CoverPipelineError
from core.models.cover import CoverErrorResponse, CoverResponse
from lib.supabase_client import SupabaseClientError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs startup configuration and shutdown.
    """
    logger.info(f"Starting Cover Image API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(
        f"Covers: bucket={settings.SUPABASE_BUCKET} folder={settings.COVER_FOLDER} "
        f"max={settings.COVER_MAX_WIDTH}x{settings.COVER_MAX_HEIGHT} "
        f"budget={settings.COVER_MAX_SIZE_KB}KB"
    )

    yield

    logger.info("Shutting down Cover Image API")


# Create FastAPI application
app = FastAPI(
    title="Cover Image API",
    description="""
## Business Directory Cover Images

Normalizes business cover images and stores them in Supabase Storage.

### How It Works

1. **Send an image** - a public URL or a base64 data URI, plus the business id
2. **Crop** - centred 3:4 portrait crop
3. **Resize** - fit inside 900x1200 (never upscaled)
4. **Compress** - WebP, lowering quality then size until it is at most 300KB
5. **Store** - upserted at `covers/<id>.webp`; the business row's `image` is updated

### Quick Start

```bash
curl -X POST http://localhost:8000/api/v1/covers \\
  -H "Content-Type: application/json" \\
  -d '{"imageData": "https://example.com/shop.jpg", "identifier": "42"}'
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Covers",
            "description": "Normalize and store business cover images",
        },
        {
            "name": "Tasks",
            "description": "Track queued cover jobs",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(CoverPipelineError)
async def handle_cover_pipeline_error(request: Request, exc: CoverPipelineError):
    """Collapse cover pipeline errors into the generic failure payload."""
    return await cover_pipeline_exception_handler(request, exc)


@app.exception_handler(SupabaseClientError)
async def handle_supabase_client_error(request: Request, exc: SupabaseClientError):
    """Report a missing storage backend with the generic failure payload."""
    return await supabase_client_exception_handler(request, exc)


@app.exception_handler(CoverApiException)
async def handle_cover_api_exception(request: Request, exc: CoverApiException):
    """Handle custom API exceptions."""
    return await cover_api_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    """Handle missing or malformed request fields."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Cover endpoints
app.include_router(
    covers.router,
    prefix="/api/v1",
    tags=["Covers"]
)

# Task status endpoints
app.include_router(
    tasks.router,
    prefix="/api/v1/tasks",
    tags=["Tasks"]
)

# The admin form posts to /api
app.add_api_route(
    "/api",
    covers.normalize_cover,
    methods=["POST"],
    response_model=CoverResponse,
    responses={500: {"model": CoverErrorResponse}},
    tags=["Covers"],
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Cover Image API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
