"""Abstract attendance source interface.

Sources fetch raw timesheets from a time-tracking provider and decode them
into typed TimesheetEntry objects at the boundary. Nothing past this module
inspects raw provider payloads.

Sources raise:
- ExternalFetchError when the provider is unreachable or rejects the call
- TimesheetDecodeError when the payload does not match the timesheet schema
"""

from abc import ABC, abstractmethod
from typing import Any, List

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from core.errors import TimesheetDecodeError
from core.models.attendance import TimesheetEntry


_TIMESHEETS = TypeAdapter(List[TimesheetEntry])


def decode_timesheets(payload: Any) -> List[TimesheetEntry]:
    """Decode a provider payload into timesheet entries.

    Accepts a bare list of entries or an OData envelope ``{"value": [...]}``.
    ``None`` and empty envelopes decode to an empty list.

    Raises:
        TimesheetDecodeError: If the payload shape is not recognized
    """
    if payload is None:
        return []
    if isinstance(payload, dict):
        if "value" not in payload:
            raise TimesheetDecodeError(f"Timesheet payload has no 'value' list (keys: {sorted(payload)})")
        payload = payload["value"]
        if payload is None:
            return []
    if not isinstance(payload, list):
        raise TimesheetDecodeError(f"Timesheet payload must be a list, got {type(payload).__name__}")

    try:
        return _TIMESHEETS.validate_python(payload)
    except PydanticValidationError as e:
        raise TimesheetDecodeError(f"Timesheet payload does not match schema: {e.error_count()} error(s)") from e


class AttendanceSource(ABC):
    """Provider of raw timesheet observations."""

    name: str = "UNKNOWN"

    @abstractmethod
    async def fetch_timesheets(
        self,
        employee_id: str,
        start_date: str,
        end_date: str,
    ) -> List[TimesheetEntry]:
        """Fetch timesheets for one employee over an inclusive date range.

        Args:
            employee_id: Provider person ID
            start_date: First day (YYYY-MM-DD)
            end_date: Last day (YYYY-MM-DD)

        Returns:
            Decoded timesheet entries, possibly empty
        """

    async def close(self) -> None:
        """Release any connections held by the source."""
        return None
