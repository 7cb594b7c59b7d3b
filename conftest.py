"""Shared fixtures: in-memory source and store fakes, SQLite store on tmp_path."""

import asyncio
from typing import Dict, List, Optional, Sequence

import pytest

from connectors.attendance_source import AttendanceSource, decode_timesheets
from core.models.attendance import AttendanceRecord, Employee, TimesheetEntry
from core.observability.metrics import MetricsCollector
from storage.base import AttendanceStore
from storage.sqlite_store import SQLiteAttendanceStore


def timesheet_day(date: str, hours=None, first_in="08:00", last_out="17:00", person_id="emp-1") -> dict:
    """Raw provider entry for one day, as the API returns it."""
    daily = {"date": date, "firstIn": first_in, "lastOut": last_out}
    if hours is not None:
        daily["payrollHours"] = hours
    return {"personId": person_id, "daily": [daily]}


class FakeSource(AttendanceSource):
    """Returns canned payloads per employee; errors are raised instead when set."""

    name = "JIBBLE"

    def __init__(
        self,
        payloads: Optional[Dict[str, object]] = None,
        errors: Optional[Dict[str, Exception]] = None,
        delay: float = 0.0,
    ):
        self.payloads = payloads or {}
        self.errors = errors or {}
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def fetch_timesheets(self, employee_id: str, start_date: str, end_date: str) -> List[TimesheetEntry]:
        self.calls.append(employee_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if employee_id in self.errors:
                raise self.errors[employee_id]
            return decode_timesheets(self.payloads.get(employee_id))
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.closed = True


class MemoryStore(AttendanceStore):
    """Dict-backed store with optional write failures per date."""

    def __init__(self, employees: Sequence[Employee] = (), fail_writes_on: Sequence[str] = ()):
        self.employees = {e.id: e for e in employees}
        self.records: Dict[tuple, AttendanceRecord] = {}
        self.fail_writes_on = set(fail_writes_on)
        self.writes = 0
        self._next_id = 1

    async def list_employees(self, ids: Sequence[str]) -> List[Employee]:
        return [self.employees[i] for i in ids if i in self.employees]

    async def get_attendance_record(self, employee_id: str, date: str) -> Optional[AttendanceRecord]:
        return self.records.get((employee_id, date))

    async def upsert_attendance_record(self, record: AttendanceRecord) -> AttendanceRecord:
        if record.date in self.fail_writes_on:
            raise RuntimeError(f"disk full writing {record.date}")
        key = (record.employee_id, record.date)
        existing = self.records.get(key)
        stored = record.model_copy(update={"id": existing.id if existing else self._next_id})
        if existing is None:
            self._next_id += 1
        self.records[key] = stored
        self.writes += 1
        return stored


@pytest.fixture
def make_source():
    return FakeSource


@pytest.fixture
def make_memory_store():
    return MemoryStore


@pytest.fixture
def day():
    return timesheet_day


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "attendance.db"


@pytest.fixture
def store(db_path):
    return SQLiteAttendanceStore(db_path)


@pytest.fixture
def employee():
    return Employee(id="emp-1", first_name="Ada", last_name="Lovelace", min_hours=8)


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Give every test its own metrics singleton."""
    MetricsCollector._instance = None
    yield
    MetricsCollector._instance = None
