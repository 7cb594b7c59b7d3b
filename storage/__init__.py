"""Storage - attendance store interface, SQLite implementation and progress log."""

from storage.base import AttendanceStore
from storage.sqlite_store import SQLiteAttendanceStore, init_attendance_db
from storage.progress_log import (
    get_latest_import_id,
    get_progress,
    init_progress_db,
    log_progress,
)

__all__ = [
    "AttendanceStore",
    "SQLiteAttendanceStore",
    "init_attendance_db",
    "get_latest_import_id",
    "get_progress",
    "init_progress_db",
    "log_progress",
]
