"""Attendance domain models.

Provider-neutral types shared by the import pipeline, the store and the API:

- Employee: directory entry with the contracted minimum daily hours
- TimesheetEntry / DailySummary: decoded provider observations
- AttendanceRecord: the reconciled ledger row, unique per (employee_id, date)
- ImportProgress: immutable snapshot of an import run
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class AttendanceStatus(str, Enum):
    """Status of an attendance record."""
    VALID = "VALID"
    TO_VERIFY = "TO_VERIFY"                  # Under the contracted minimum
    NEEDS_CORRECTION = "NEEDS_CORRECTION"    # Implausible daily total
    CORRECTED = "CORRECTED"                  # Set by a human only


class ImportRunStatus(str, Enum):
    """Lifecycle of an import run."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


# =============================================================================
# Employee directory
# =============================================================================

class Employee(BaseModel):
    """Employee as known to the local directory.

    Read-only to the import pipeline.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Employee ID (provider person ID)")
    first_name: str = ""
    last_name: str = ""
    min_hours: float = Field(default=8.0, ge=0, description="Contracted minimum daily hours")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# =============================================================================
# Provider observations
# =============================================================================

class DailySummary(BaseModel):
    """Per-day detail nested in a timesheet entry."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: Optional[str] = None
    first_in: Optional[str] = Field(default=None, alias="firstIn")
    last_out: Optional[str] = Field(default=None, alias="lastOut")
    payroll_hours: Optional[Union[str, float]] = Field(default=None, alias="payrollHours")


class TimesheetEntry(BaseModel):
    """One provider timesheet observation, possibly with daily sub-records."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    person_id: Optional[str] = Field(default=None, alias="personId")
    daily: List[DailySummary] = Field(default_factory=list)


# =============================================================================
# Ledger
# =============================================================================

class OriginalData(BaseModel):
    """Copy of the source observation a record was built from."""
    model_config = ConfigDict(populate_by_name=True)

    start_time: Optional[str] = None
    end_time: Optional[str] = None
    total_hours: float = 0.0
    source: str = "JIBBLE"


class AttendanceRecord(BaseModel):
    """Reconciled attendance for one employee on one date.

    ``date`` is kept as an ISO ``YYYY-MM-DD`` string, the form the store keys
    on. Format and range checks live in the record validator so a malformed
    candidate can be reported instead of failing construction.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    employee_id: str
    employee_name: str = ""
    date: str
    normal_hours: float
    extra_hours: float
    status: AttendanceStatus
    original_data: OriginalData = Field(default_factory=OriginalData)
    last_import_id: Optional[str] = None


# =============================================================================
# Progress
# =============================================================================

class ImportProgress(BaseModel):
    """Immutable progress snapshot pushed to progress sinks."""
    model_config = ConfigDict(frozen=True)

    import_id: Optional[str] = None
    total: int = 0
    current: int = 0
    status: ImportRunStatus = ImportRunStatus.PENDING
    message: Optional[str] = None
    imported: int = 0
    failed: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status in (ImportRunStatus.COMPLETED, ImportRunStatus.ERROR)
