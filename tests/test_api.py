# =============================================================================
# tests/test_api.py - HTTP Endpoint Tests
# =============================================================================
# Tests the FastAPI app through TestClient:
# - POST /api and POST /api/v1/covers (response shapes, failure payload)
# - POST /api/v1/covers/async and the task status endpoints
# - Health endpoints
#
# The cover service is replaced through app.dependency_overrides; Celery is
# patched so no broker is needed.
# =============================================================================

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_cover_service, get_supabase_client
from app.main import app
from core.exceptions import DecodeError, FetchError, RecordUpdateError
from core.services.cover_service import NormalizedCover
from lib.supabase_client import SupabaseClientError
from workers.celery_app import celery_app

COVER_URL = "https://test-project.supabase.co/storage/v1/object/public/cactux/covers/42.webp"


def stored_cover(identifier: str = "42") -> NormalizedCover:
    return NormalizedCover(
        identifier=identifier,
        path=f"covers/{identifier}.webp",
        url=COVER_URL,
        content_type="image/webp",
        size_bytes=51234,
        width=900,
        height=1200,
        quality=85,
        iterations=1,
        within_budget=True,
    )


@pytest.fixture
def service():
    """CoverService double returned by the dependency override."""
    mock = MagicMock()
    mock.normalize.return_value = stored_cover()
    return mock


@pytest.fixture
def client(service):
    app.dependency_overrides[get_cover_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# POST /api/v1/covers
# =============================================================================

class TestNormalizeEndpoint:
    """Tests for the synchronous cover endpoint."""

    def test_success_shape(self, client, service):
        response = client.post(
            "/api/v1/covers",
            json={"imageData": "data:image/png;base64,iVBORw0KGgo=", "identifier": "42"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "url": COVER_URL,
            "message": "Image processed and saved successfully",
        }
        service.normalize.assert_called_once_with("data:image/png;base64,iVBORw0KGgo=", "42")

    def test_admin_form_path_with_business_id(self, client, service):
        """POST /api accepts the admin form's businessId field."""
        response = client.post(
            "/api",
            json={"imageData": "https://example.com/shop.jpg", "businessId": "42"},
        )

        assert response.status_code == 200
        assert response.json()["url"] == COVER_URL
        service.normalize.assert_called_once_with("https://example.com/shop.jpg", "42")

    def test_missing_field_is_rejected(self, client, service):
        response = client.post("/api/v1/covers", json={"identifier": "42"})

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert any("imageData" in err["loc"] for err in body["errors"])
        service.normalize.assert_not_called()

    def test_empty_identifier_is_rejected(self, client):
        response = client.post("/api/v1/covers", json={"imageData": "abc", "identifier": ""})

        assert response.status_code == 422

    @pytest.mark.parametrize(
        "error",
        [
            DecodeError("cannot identify image file"),
            FetchError("https://example.com/x.jpg", "404 Not Found"),
            RecordUpdateError("42", "permission denied"),
        ],
    )
    def test_pipeline_errors_collapse_to_generic_payload(self, client, service, error):
        """Every pipeline failure returns 500 with the diagnostic as details."""
        service.normalize.side_effect = error

        response = client.post("/api/v1/covers", json={"imageData": "x", "identifier": "42"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to process image",
            "details": error.message,
        }

    def test_unexpected_error_uses_same_payload(self, client, service):
        service.normalize.side_effect = RuntimeError("out of memory")

        response = client.post("/api", json={"imageData": "x", "businessId": "42"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process image", "details": "out of memory"}


class TestStorageBackendUnavailable:
    """The Supabase client fails before the cover route runs."""

    @pytest.fixture
    def offline_client(self):
        def fail_to_connect():
            raise SupabaseClientError(
                message="Failed to create Supabase client: Invalid API key",
                code="CLIENT_INIT_FAILED",
            )

        app.dependency_overrides[get_supabase_client] = fail_to_connect
        yield TestClient(app)
        app.dependency_overrides.clear()

    @pytest.mark.parametrize("path,id_field", [("/api", "businessId"), ("/api/v1/covers", "identifier")])
    def test_client_failure_uses_generic_payload(self, offline_client, path, id_field):
        response = offline_client.post(path, json={"imageData": "x", id_field: "42"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to process image",
            "details": "Failed to create Supabase client: Invalid API key",
        }


# =============================================================================
# POST /api/v1/covers/async and /api/v1/tasks
# =============================================================================

class TestAsyncCovers:
    """Tests for queued cover jobs."""

    def test_queue_returns_task_id(self, client):
        with patch("workers.tasks.normalize_cover_task") as task:
            task.delay.return_value = MagicMock(id="task-123")

            response = client.post(
                "/api/v1/covers/async",
                json={"imageData": "https://example.com/shop.jpg", "identifier": "42"},
            )

        assert response.status_code == 202
        body = response.json()
        assert body["task_id"] == "task-123"
        assert body["status"] == "PENDING"
        task.delay.assert_called_once_with("https://example.com/shop.jpg", "42")

    def test_queue_unavailable(self, client):
        with patch("workers.tasks.normalize_cover_task") as task:
            task.delay.side_effect = ConnectionError("Error 111 connecting to localhost:6379")

            response = client.post(
                "/api/v1/covers/async",
                json={"imageData": "x", "identifier": "42"},
            )

        assert response.status_code == 503
        assert response.json()["code"] == "TASK_QUEUE_UNAVAILABLE"

    def test_task_status_success(self, client):
        result = MagicMock(status="SUCCESS", result={"success": True, "url": COVER_URL})

        with patch.object(celery_app, "AsyncResult", return_value=result):
            response = client.get("/api/v1/tasks/task-123")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "SUCCESS"
        assert body["progress"] == 100
        assert body["url"] == COVER_URL
        assert body["result"]["url"] == COVER_URL
        assert "error" not in body

    def test_task_status_rejected_cover(self, client):
        """A job that returned a failure dict is reported as failed, not complete."""
        result = MagicMock(
            status="SUCCESS",
            result={
                "success": False,
                "error": "Failed to process image",
                "details": "Failed to decode image: cannot identify image file",
                "kind": "decode",
                "stage": "decoding",
            },
        )

        with patch.object(celery_app, "AsyncResult", return_value=result):
            response = client.get("/api/v1/tasks/task-123")

        body = response.json()
        assert body["message"] == "Failed"
        assert body["error"] == "Failed to process image"
        assert body["details"] == "Failed to decode image: cannot identify image file"
        assert "url" not in body

    def test_task_status_worker_crash(self, client):
        result = MagicMock(status="FAILURE", result=RuntimeError("worker lost"))

        with patch.object(celery_app, "AsyncResult", return_value=result):
            body = client.get("/api/v1/tasks/task-123").json()

        assert body["message"] == "Failed"
        assert body["details"] == "worker lost"

    def test_task_result_stored_cover(self, client):
        result = MagicMock(status="SUCCESS", result={
            "success": True,
            "url": COVER_URL,
            "message": "Image processed and saved successfully",
        })

        with patch.object(celery_app, "AsyncResult", return_value=result):
            response = client.get("/api/v1/tasks/task-123/result")

        assert response.json() == {
            "task_id": "task-123",
            "success": True,
            "url": COVER_URL,
            "message": "Image processed and saved successfully",
        }

    def test_task_result_rejected_cover(self, client):
        result = MagicMock(status="SUCCESS", result={
            "success": False,
            "error": "Failed to process image",
            "details": "Failed to fetch image: 404 Not Found",
        })

        with patch.object(celery_app, "AsyncResult", return_value=result):
            response = client.get("/api/v1/tasks/task-123/result")

        assert response.json() == {
            "task_id": "task-123",
            "error": "Failed to process image",
            "details": "Failed to fetch image: 404 Not Found",
        }

    def test_cancel_finished_task(self, client):
        result = MagicMock(status="SUCCESS")

        with patch.object(celery_app, "AsyncResult", return_value=result):
            response = client.delete("/api/v1/tasks/task-123")

        assert response.json()["cancelled"] is False
        result.revoke.assert_not_called()

    def test_task_status_progress(self, client):
        result = MagicMock(status="PROGRESS", info={"percent": 50, "message": "Normalizing cover..."})

        with patch.object(celery_app, "AsyncResult", return_value=result):
            response = client.get("/api/v1/tasks/task-123")

        assert response.json()["progress"] == 50
        assert response.json()["message"] == "Normalizing cover..."

    def test_task_result_pending(self, client):
        result = MagicMock(status="PENDING")

        with patch.object(celery_app, "AsyncResult", return_value=result):
            response = client.get("/api/v1/tasks/task-123/result")

        assert response.json() == {
            "task_id": "task-123",
            "status": "PENDING",
            "message": "Task not yet complete",
        }

    def test_cancel_pending_task(self, client):
        result = MagicMock(status="PENDING")

        with patch.object(celery_app, "AsyncResult", return_value=result):
            response = client.delete("/api/v1/tasks/task-123")

        assert response.json()["cancelled"] is True
        result.revoke.assert_called_once_with(terminate=True)


# =============================================================================
# Health and Root
# =============================================================================

class TestHealthEndpoints:
    """Tests for health and root endpoints."""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "development"

    def test_live(self, client):
        assert client.get("/api/v1/health/live").json()["status"] == "alive"

    def test_ready(self, client, service):
        with patch("app.routers.health.get_supabase_client"), \
                patch("app.routers.health.get_cover_service", return_value=service):
            response = client.get("/api/v1/health/ready")

        assert response.json()["status"] == "ready"
        assert response.json()["checks"] == {"database": "healthy", "storage": "healthy"}

    def test_ready_degraded_when_storage_fails(self, client, service):
        service.storage.ping.side_effect = RuntimeError("Bucket not found")

        with patch("app.routers.health.get_supabase_client"), \
                patch("app.routers.health.get_cover_service", return_value=service):
            response = client.get("/api/v1/health/ready")

        body = response.json()
        assert body["status"] == "degraded"
        assert body["checks"]["database"] == "healthy"
        assert body["checks"]["storage"].startswith("unhealthy: Bucket not found")

    def test_ready_degraded_when_client_cannot_be_created(self, client):
        """A client setup failure is reported as a check, not as a 500."""
        error = SupabaseClientError(message="Invalid API key", code="CLIENT_INIT_FAILED")

        with patch("app.routers.health.get_supabase_client", side_effect=error):
            response = client.get("/api/v1/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "degraded"
        assert body["checks"] == {
            "database": "unhealthy: Invalid API key",
            "storage": "unhealthy: Invalid API key",
        }

    def test_root(self, client):
        body = client.get("/").json()

        assert body["name"] == "Cover Image API"
        assert body["health"] == "/api/v1/health"
