"""Candidate record validation.

Runs before persistence. A failure rejects only the day being imported.
"""

import math
from datetime import date
from numbers import Real
from typing import List

from core.errors import ValidationError
from core.models.attendance import AttendanceRecord, AttendanceStatus


_STATUS_VALUES = {s.value for s in AttendanceStatus}


def _check_date(value) -> List[str]:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return ["date is required"]
    if not isinstance(value, str):
        return [f"date must be an ISO string, got {type(value).__name__}"]
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return [f"date is not a valid YYYY-MM-DD date: {value!r}"]
    # fromisoformat accepts other ISO forms on newer interpreters
    if parsed.isoformat() != value:
        return [f"date is not in YYYY-MM-DD form: {value!r}"]
    return []


def _check_hours(name: str, value) -> List[str]:
    if isinstance(value, bool) or not isinstance(value, Real):
        return [f"{name} must be a number, got {value!r}"]
    if not math.isfinite(value):
        return [f"{name} must be finite, got {value!r}"]
    if value < 0:
        return [f"{name} must be non-negative, got {value!r}"]
    return []


def _check_status(value) -> List[str]:
    raw = value.value if isinstance(value, AttendanceStatus) else value
    if raw not in _STATUS_VALUES:
        return [f"status must be one of {sorted(_STATUS_VALUES)}, got {value!r}"]
    return []


def validate_attendance_record(record: AttendanceRecord) -> None:
    """Check a candidate record's integrity.

    Checks:
        - date present and a well-formed calendar date (YYYY-MM-DD)
        - employee_id non-empty
        - normal_hours and extra_hours finite and non-negative
        - status is a defined AttendanceStatus value

    Raises:
        ValidationError: With every failed check listed in ``errors``
    """
    errors: List[str] = []

    errors.extend(_check_date(record.date))

    employee_id = record.employee_id
    if not isinstance(employee_id, str) or employee_id.strip() == "":
        errors.append("employee_id is required")

    errors.extend(_check_hours("normal_hours", record.normal_hours))
    errors.extend(_check_hours("extra_hours", record.extra_hours))
    errors.extend(_check_status(record.status))

    if errors:
        raise ValidationError(
            f"Invalid attendance record for {employee_id or '?'} on {record.date or '?'}: "
            + "; ".join(errors),
            errors=errors,
        )
