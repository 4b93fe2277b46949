# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Builds test images with Pillow
# - Provides a CoverService wired to mocked storage and record services
# =============================================================================

import base64
import io
import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from unittest.mock import MagicMock

import pytest
from PIL import Image

from core.services.cover_service import CoverService
from core.services.image_source_service import ImageSourceService
from core.services.record_service import RecordService
from core.services.storage_service import StorageService

PUBLIC_BASE_URL = "https://test-project.supabase.co/storage/v1/object/public/cactux"


# =============================================================================
# Image Helpers
# =============================================================================

def make_image_bytes(
    width: int,
    height: int,
    fmt: str = "PNG",
    mode: str = "RGB",
    color=None,
) -> bytes:
    """Encode a solid-colour image of the given size."""
    if color is None:
        color = (30, 120, 200, 128) if mode == "RGBA" else (30, 120, 200)
    img = Image.new(mode, (width, height), color=color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_noise_image(width: int, height: int, seed: int = 7) -> Image.Image:
    """An RGB image of pseudo-random pixels (hard to compress)."""
    pixels = bytearray(width * height * 3)
    state = seed
    for i in range(len(pixels)):
        state = (state * 1103515245 + 12345) & 0x7FFFFFFF
        pixels[i] = state >> 23
    return Image.frombytes("RGB", (width, height), bytes(pixels))


def to_data_uri(data: bytes, subtype: str = "png") -> str:
    """Wrap bytes the way a browser FileReader does."""
    return f"data:image/{subtype};base64,{base64.b64encode(data).decode()}"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def image_bytes():
    """Factory fixture: image_bytes(width, height, fmt="PNG", mode="RGB")."""
    return make_image_bytes


@pytest.fixture
def noise_image():
    """Factory fixture: noise_image(width, height) -> PIL image."""
    return make_noise_image


@pytest.fixture
def data_uri():
    """Factory fixture: data_uri(raw_bytes, subtype="png")."""
    return to_data_uri


@pytest.fixture
def mock_storage():
    """StorageService double that records uploads and builds public URLs."""
    storage = MagicMock(spec=StorageService)
    storage.put.side_effect = lambda path, data, content_type, upsert=True: path
    storage.public_url_of.side_effect = lambda path: f"{PUBLIC_BASE_URL}/{path}"
    return storage


@pytest.fixture
def mock_records():
    """RecordService double."""
    return MagicMock(spec=RecordService)


@pytest.fixture
def cover_service(mock_storage, mock_records):
    """CoverService with default policy and mocked collaborators."""
    return CoverService(
        source=ImageSourceService(),
        storage=mock_storage,
        records=mock_records,
    )
