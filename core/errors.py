"""Error taxonomy for the attendance import pipeline.

Errors are grouped by the scope they are allowed to affect:

- Day scope: ParseError, ValidationError, PersistenceError. Captured by the
  per-employee importer; only the offending day is skipped.
- Employee scope: ExternalFetchError. Captured by the batch orchestrator; the
  run continues with the next employee.
- Run scope: NoEmployeesFoundError (and any employee-resolution failure),
  ImportCancelledError. Surfaced to the caller; the run ends in ``error``.

TimesheetDecodeError is raised by sources when a provider payload does not
match the expected shape. The importer treats it as "no data".
"""

from typing import List, Optional


class AttendanceImportError(Exception):
    """Base exception for attendance import errors."""

    code = "IMPORT_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ParseError(AttendanceImportError):
    """Raw hours value could not be parsed."""

    code = "PARSE_ERROR"


class ValidationError(AttendanceImportError):
    """Candidate attendance record failed structural or business checks."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class PersistenceError(AttendanceImportError):
    """Attendance store read or write failed."""

    code = "DATABASE_ERROR"


class ExternalFetchError(AttendanceImportError):
    """Attendance source was unreachable or rejected the request."""

    code = "FETCH_ERROR"

    def __init__(self, message: str, employee_id: Optional[str] = None, status_code: int = 0):
        super().__init__(message)
        self.employee_id = employee_id
        self.status_code = status_code


class TimesheetDecodeError(AttendanceImportError):
    """Provider payload did not match the timesheet schema."""

    code = "DECODE_ERROR"


class NoEmployeesFoundError(AttendanceImportError):
    """Employee resolution produced an empty set."""

    code = "NO_EMPLOYEES"


class ImportCancelledError(AttendanceImportError):
    """Run was cancelled before every employee was processed.

    Attributes:
        records: Records persisted before the cancellation took effect
    """

    code = "CANCELLED"

    def __init__(self, message: str = "Import cancelled", records: Optional[list] = None):
        super().__init__(message)
        self.records = records or []
