"""Conflict-aware persistence of attendance records.

Human corrections win: a stored record whose status is CORRECTED is never
overwritten by an import.

The read and the conditional write are two separate store calls with no lock
held between them. A correction written by another process inside that gap
can be overwritten. This race is accepted; the pipeline itself never issues
two concurrent writes for the same (employee_id, date).
"""

from typing import Optional

from core.errors import PersistenceError
from core.models.attendance import AttendanceRecord, AttendanceStatus
from core.observability.logging import get_logger
from storage.base import AttendanceStore


logger = get_logger(__name__)


class ConflictAwarePersister:
    """Upserts candidates unless the stored record is CORRECTED."""

    def __init__(self, store: AttendanceStore):
        self.store = store

    async def upsert(self, candidate: AttendanceRecord) -> Optional[AttendanceRecord]:
        """Persist a candidate record.

        Returns:
            The persisted record, or None when the stored record is CORRECTED
            and the candidate was not written

        Raises:
            PersistenceError: If the store read or write fails
        """
        try:
            existing = await self.store.get_attendance_record(candidate.employee_id, candidate.date)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(
                f"Failed to read attendance for {candidate.employee_id} on {candidate.date}: {e}"
            ) from e

        if existing is not None and existing.status == AttendanceStatus.CORRECTED:
            logger.info(
                f"Skipping {candidate.employee_id} on {candidate.date}: record was corrected manually"
            )
            return None

        try:
            return await self.store.upsert_attendance_record(candidate)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(
                f"Failed to write attendance for {candidate.employee_id} on {candidate.date}: {e}"
            ) from e
