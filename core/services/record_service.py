# =============================================================================
# core/services/record_service.py - Business Record Updates
# =============================================================================
# Points a business row at its cover image. Record CRUD itself belongs to
# the admin UI; this service only writes the image column.
# =============================================================================

import logging

from supabase import Client

from core.exceptions import RecordUpdateError

logger = logging.getLogger(__name__)

# Default table and column names
TABLE_NAME = "business"
IMAGE_FIELD = "image"


class RecordService:
    """
    Service for updating the image field of business records.
    """

    def __init__(
        self,
        client: Client,
        table: str = TABLE_NAME,
        image_field: str = IMAGE_FIELD,
    ):
        self._client = client
        self.table = table
        self.image_field = image_field

    def update_record_image_field(self, identifier: str, url: str) -> None:
        """
        Set the image column of the record with id == identifier.

        An identifier that matches no row is logged, not raised.

        Args:
            identifier: Record primary key
            url: Public URL of the cover

        Raises:
            RecordUpdateError: If the update query fails
        """
        try:
            response = (
                self._client.table(self.table)
                .update({self.image_field: url})
                .eq("id", identifier)
                .execute()
            )
        except Exception as e:
            logger.error(f"Record update failed for {self.table}/{identifier}: {e}")
            raise RecordUpdateError(identifier, str(e)) from e

        if not response.data:
            logger.warning(f"No {self.table} row matched id {identifier}; image field not updated")
        else:
            logger.info(f"Updated {self.table}/{identifier}.{self.image_field}")

    def ping(self) -> bool:
        """Check that the record table is reachable."""
        self._client.table(self.table).select("id").limit(1).execute()
        return True
