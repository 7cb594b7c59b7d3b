"""Core data models for the attendance import service."""

from core.models.attendance import (
    AttendanceRecord,
    AttendanceStatus,
    DailySummary,
    Employee,
    ImportProgress,
    ImportRunStatus,
    OriginalData,
    TimesheetEntry,
)

__all__ = [
    "AttendanceRecord",
    "AttendanceStatus",
    "DailySummary",
    "Employee",
    "ImportProgress",
    "ImportRunStatus",
    "OriginalData",
    "TimesheetEntry",
]
