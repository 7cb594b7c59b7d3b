"""Attendance import pipeline.

Leaves first:
- hours: parse provider hour values
- status: classify a day and split normal/extra hours
- validators: reject malformed candidate records
- persister: upsert unless a human corrected the stored record
- importer: import one employee's period
- orchestrator: batch a set of employees through the importer
- progress: caller-owned progress snapshots

Usage:
    importer = AttendanceImporter(store, source, on_progress=print)
    records = await importer.import_for_period("2024-03-01", "2024-03-31", ["emp-1"])
"""

from attendance_import.hours import parse_hours
from attendance_import.status import MAX_DAILY_HOURS, classify, split_hours
from attendance_import.validators import validate_attendance_record
from attendance_import.persister import ConflictAwarePersister
from attendance_import.importer import DaySkip, EmployeeImporter, EmployeeImportResult
from attendance_import.progress import ProgressTracker
from attendance_import.orchestrator import AttendanceImporter

__all__ = [
    "parse_hours",
    "MAX_DAILY_HOURS",
    "classify",
    "split_hours",
    "validate_attendance_record",
    "ConflictAwarePersister",
    "DaySkip",
    "EmployeeImporter",
    "EmployeeImportResult",
    "ProgressTracker",
    "AttendanceImporter",
]
