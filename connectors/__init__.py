"""Attendance source connectors.

This package contains the provider-neutral AttendanceSource interface and
the concrete Jibble implementation.

Key Design Principle:
- The import pipeline depends ONLY on the AttendanceSource interface
- Sources return decoded TimesheetEntry objects, never raw payloads
- Provider-specific auth, retries and error types stay inside the provider folder

To add a new provider:
1. Create a new folder (e.g., clockify/)
2. Implement AttendanceSource.fetch_timesheets
3. Map transport failures to ExternalFetchError and decode with decode_timesheets
"""

from connectors.attendance_source import AttendanceSource, decode_timesheets

__all__ = [
    "AttendanceSource",
    "decode_timesheets",
]
