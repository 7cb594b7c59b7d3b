"""Activity definitions module."""

from activities.import_attendance import (
    import_attendance_period,
    create_source,
    ImportAttendanceInput,
)

__all__ = [
    "import_attendance_period",
    "create_source",
    "ImportAttendanceInput",
]
