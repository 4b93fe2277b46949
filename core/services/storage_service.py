# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles writing cover images to Supabase Storage and resolving their
# public URLs. The Supabase client is injected, so tests can pass a mock.
# =============================================================================

import logging

from supabase import Client

from core.exceptions import StorageError

logger = logging.getLogger(__name__)

# Default storage bucket name
BUCKET_NAME = "cactux"


class StorageService:
    """
    Service for Supabase Storage operations.

    Implements the object store used by the cover pipeline:
    - put: upload bytes at a path (optionally overwriting)
    - public_url_of: resolve the public URL of a stored path
    """

    def __init__(self, client: Client, bucket: str = BUCKET_NAME):
        self._client = client
        self.bucket = bucket

    def put(
        self,
        path: str,
        data: bytes,
        content_type: str,
        upsert: bool = True,
    ) -> str:
        """
        Upload raw bytes to storage.

        Args:
            path: Path inside the bucket (e.g. "covers/550e8400.webp")
            data: File bytes
            content_type: MIME type stored with the object
            upsert: Overwrite an existing object at the same path

        Returns:
            Storage path where the file was uploaded

        Raises:
            StorageError: If upload fails
        """
        try:
            self._client.storage.from_(self.bucket).upload(
                path=path,
                file=data,
                file_options={
                    "content-type": content_type,
                    "upsert": "true" if upsert else "false",
                }
            )
        except Exception as e:
            logger.error(f"Storage upload failed for {path}: {e}")
            raise StorageError(path, str(e)) from e

        logger.info(f"Uploaded file to storage: {self.bucket}/{path} ({len(data)} bytes)")
        return path

    def public_url_of(self, path: str) -> str:
        """
        Get the public URL for a storage file.

        Args:
            path: Path inside the bucket

        Returns:
            Public URL string

        Raises:
            StorageError: If the URL cannot be resolved
        """
        try:
            url = self._client.storage.from_(self.bucket).get_public_url(path)
        except Exception as e:
            logger.error(f"Failed to get public URL for {path}: {e}")
            raise StorageError(path, f"could not resolve public URL: {e}") from e

        if not url:
            raise StorageError(path, "storage returned an empty public URL")
        return url

    def ping(self) -> bool:
        """
        Check that the bucket is reachable.

        Used by the readiness endpoint; raises whatever the client raises.
        """
        self._client.storage.get_bucket(self.bucket)
        return True
