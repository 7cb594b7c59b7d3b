"""Jibble attendance source.

Implements AttendanceSource on top of JibbleApiClient: fetches the timesheet
summary for a person, maps client errors to ExternalFetchError and decodes
the payload at the boundary.
"""

from typing import List, Optional

from connectors.attendance_source import AttendanceSource, decode_timesheets
from connectors.jibble.auth import JibbleAuthConfig, JibbleAuthProvider
from connectors.jibble.client import JibbleApiClient, JibbleApiConfig, JibbleApiError
from core.config import Settings
from core.errors import ExternalFetchError
from core.models.attendance import TimesheetEntry
from core.observability.logging import get_logger


logger = get_logger(__name__)


class JibbleTimesheetSource(AttendanceSource):
    """Timesheets from the Jibble TimesheetsSummary endpoint."""

    name = "JIBBLE"

    def __init__(self, client: JibbleApiClient):
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings, api_config: Optional[JibbleApiConfig] = None) -> "JibbleTimesheetSource":
        """Build a source from service settings.

        Raises:
            ValueError: If Jibble credentials are not configured
        """
        if not settings.jibble_client_id or not settings.jibble_client_secret:
            raise ValueError("JIBBLE_CLIENT_ID and JIBBLE_CLIENT_SECRET must be set")

        auth = JibbleAuthProvider(
            JibbleAuthConfig(
                client_id=settings.jibble_client_id,
                client_secret=settings.jibble_client_secret,
            ),
            cache_path=settings.jibble_token_cache,
        )
        return cls(JibbleApiClient(auth, api_config))

    async def close(self) -> None:
        await self.client.disconnect()

    async def fetch_timesheets(
        self,
        employee_id: str,
        start_date: str,
        end_date: str,
    ) -> List[TimesheetEntry]:
        try:
            payload = await self.client.get_timesheets_summary(employee_id, start_date, end_date)
        except JibbleApiError as e:
            raise ExternalFetchError(
                f"Jibble request failed for {employee_id}: {e}",
                employee_id=employee_id,
                status_code=e.status_code,
            ) from e

        entries = decode_timesheets(payload)
        logger.debug(f"Decoded {len(entries)} timesheet entries for {employee_id}")
        return entries
