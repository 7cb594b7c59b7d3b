"""Import activity tests using temporalio's ActivityEnvironment."""

import asyncio

import pytest
from temporalio.testing import ActivityEnvironment

import activities.import_attendance as import_attendance
from activities.import_attendance import ImportAttendanceInput, import_attendance_period
from core.models.attendance import Employee
from storage.progress_log import get_progress
from storage.sqlite_store import SQLiteAttendanceStore


def seed(db_path, n):
    store = SQLiteAttendanceStore(db_path)
    for i in range(n):
        store.add_employee(Employee(id=f"emp-{i}", first_name="Worker", last_name=f"{i:02d}", min_hours=8))
    return store


def activity_input(db_path, n, **overrides):
    values = dict(
        import_id="imp-activity",
        start_date="2024-03-04",
        end_date="2024-03-05",
        employee_ids=[f"emp-{i}" for i in range(n)],
        db_path=str(db_path),
    )
    values.update(overrides)
    return ImportAttendanceInput(**values)


class TestImportAttendanceActivity:

    def test_imports_and_records_progress(self, monkeypatch, db_path, make_source, day):
        store = seed(db_path, 2)
        source = make_source({
            "emp-0": [day("2024-03-04", "PT10H"), day("2024-03-05", "PT6H")],
            "emp-1": [day("2024-03-04", "PT8H")],
        })
        monkeypatch.setattr(import_attendance, "create_source", lambda settings: source)

        heartbeats = []
        env = ActivityEnvironment()
        env.on_heartbeat = lambda *details: heartbeats.append(details[0])

        result = asyncio.run(env.run(import_attendance_period, activity_input(db_path, 2)))

        assert result["status"] == "completed"
        assert result["records"] == 3
        assert result["current"] == result["total"] == 2
        assert len(store.list_attendance_records()) == 3

        logged = get_progress("imp-activity", db_path)
        assert [e["status"] for e in logged] == ["processing", "processing", "processing", "completed"]
        assert len(heartbeats) == len(logged)
        assert heartbeats[-1]["status"] == "completed"
        assert source.closed

    def test_no_employees_fails_with_error_progress(self, monkeypatch, db_path, make_source):
        seed(db_path, 0)
        source = make_source()
        monkeypatch.setattr(import_attendance, "create_source", lambda settings: source)

        with pytest.raises(Exception, match="No employees found"):
            asyncio.run(ActivityEnvironment().run(import_attendance_period, activity_input(db_path, 1)))

        logged = get_progress("imp-activity", db_path)
        assert logged[-1]["status"] == "error"
        assert source.closed

    def test_cancellation_drains_and_reraises(self, monkeypatch, db_path, make_source, day):
        seed(db_path, 4)
        source = make_source(
            {f"emp-{i}": [day("2024-03-04", "PT8H")] for i in range(4)},
            delay=0.05,
        )
        monkeypatch.setattr(import_attendance, "create_source", lambda settings: source)

        async def run_and_cancel():
            first_done = asyncio.Event()
            env = ActivityEnvironment()

            def on_heartbeat(*details):
                if details[0]["current"] >= 1:
                    first_done.set()

            env.on_heartbeat = on_heartbeat
            task = asyncio.create_task(env.run(
                import_attendance_period,
                activity_input(db_path, 4, batch_size=2, concurrency=1),
            ))
            await first_done.wait()
            env.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run_and_cancel())

        assert len(source.calls) == 2
        logged = get_progress("imp-activity", db_path)
        assert logged[-1]["status"] == "error"
        assert "cancelled" in logged[-1]["message"]
        assert logged[-1]["current"] == 2
        assert source.closed

    def test_missing_credentials_recorded_as_error(self, monkeypatch, db_path):
        seed(db_path, 1)
        monkeypatch.delenv("JIBBLE_CLIENT_ID", raising=False)
        monkeypatch.delenv("JIBBLE_CLIENT_SECRET", raising=False)

        with pytest.raises(ValueError, match="JIBBLE_CLIENT_ID"):
            asyncio.run(ActivityEnvironment().run(import_attendance_period, activity_input(db_path, 1)))

        logged = get_progress("imp-activity", db_path)
        assert [e["status"] for e in logged] == ["error"]
        assert "could not start" in logged[0]["message"]
        assert logged[0]["total"] == 1
