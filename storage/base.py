"""Abstract attendance store interface.

The import pipeline depends only on this interface. The employee directory
and the attendance ledger live behind it.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from core.models.attendance import AttendanceRecord, Employee


class AttendanceStore(ABC):
    """Employee directory plus attendance ledger."""

    @abstractmethod
    async def list_employees(self, ids: Sequence[str]) -> List[Employee]:
        """Return the employees whose IDs are in ``ids`` (unknown IDs are ignored)."""

    @abstractmethod
    async def get_attendance_record(self, employee_id: str, date: str) -> Optional[AttendanceRecord]:
        """Return the stored record for (employee_id, date), or None."""

    @abstractmethod
    async def upsert_attendance_record(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert or replace the record keyed by (employee_id, date) and return the stored form."""
