# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Cover Image API:
# - test_geometry.py: Crop rectangle and resize target arithmetic
# - test_compression.py: The WebP compression loop
# - test_image_source.py: URL download and base64 decoding
# - test_cover_service.py: The full pipeline with mocked storage
# - test_supabase_services.py: Storage and record adapters over a mocked client
# - test_api.py: HTTP endpoints via FastAPI TestClient
# - test_tasks.py: Celery task wrapper
# - test_models.py: Request models, settings and error taxonomy
#
# Run tests with: pytest
# =============================================================================
