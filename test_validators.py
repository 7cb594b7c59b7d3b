"""Record validator tests."""

import pytest

from attendance_import.validators import validate_attendance_record
from core.errors import ValidationError
from core.models.attendance import AttendanceRecord, AttendanceStatus


def make_record(**overrides) -> AttendanceRecord:
    values = dict(
        employee_id="emp-1",
        employee_name="Ada Lovelace",
        date="2024-03-04",
        normal_hours=8.0,
        extra_hours=1.5,
        status=AttendanceStatus.VALID,
    )
    values.update(overrides)
    return AttendanceRecord.model_construct(**values)


class TestValidateAttendanceRecord:

    def test_valid_record_passes(self):
        assert validate_attendance_record(make_record()) is None

    @pytest.mark.parametrize("bad_date", ["", "2024-02-30", "04/03/2024", "2024-3-4", "20240304", "not a date"])
    def test_bad_dates(self, bad_date):
        with pytest.raises(ValidationError) as exc_info:
            validate_attendance_record(make_record(date=bad_date))
        assert any("date" in e for e in exc_info.value.errors)

    def test_missing_date(self):
        with pytest.raises(ValidationError, match="date is required"):
            validate_attendance_record(make_record(date=None))

    @pytest.mark.parametrize("employee_id", ["", "   "])
    def test_blank_employee(self, employee_id):
        with pytest.raises(ValidationError, match="employee_id is required"):
            validate_attendance_record(make_record(employee_id=employee_id))

    @pytest.mark.parametrize("field, value", [
        ("normal_hours", -1.0),
        ("extra_hours", -0.01),
        ("normal_hours", float("nan")),
        ("extra_hours", float("inf")),
        ("normal_hours", "8"),
        ("extra_hours", None),
    ])
    def test_bad_hours(self, field, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_attendance_record(make_record(**{field: value}))
        assert any(field in e for e in exc_info.value.errors)

    def test_unknown_status(self):
        with pytest.raises(ValidationError, match="status must be one of"):
            validate_attendance_record(make_record(status="APPROVED"))

    def test_all_errors_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_attendance_record(make_record(date="", employee_id="", normal_hours=-1))
        assert len(exc_info.value.errors) == 3
        assert exc_info.value.code == "VALIDATION_ERROR"
