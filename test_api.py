"""API tests using FastAPI's TestClient with store, settings and starter overridden."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from api.server import create_app
from api.services.imports import get_import_starter, get_settings, get_store
from attendance_import.persister import ConflictAwarePersister
from core.config import Settings
from core.models.attendance import AttendanceRecord, AttendanceStatus, Employee, ImportProgress, ImportRunStatus
from storage.progress_log import get_latest_import_id, init_progress_db, log_progress


@pytest.fixture
def started():
    return []


@pytest.fixture
def client(db_path, store, started):
    settings = Settings(db_path=db_path)

    async def fake_starter(input, settings):
        started.append(input)
        return input.import_id

    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_import_starter] = lambda: fake_starter
    return TestClient(app)


def seed_record(store, date="2024-03-04", normal=8.0, extra=1.0):
    record = AttendanceRecord(
        employee_id="emp-1",
        employee_name="Ada Lovelace",
        date=date,
        normal_hours=normal,
        extra_hours=extra,
        status=AttendanceStatus.VALID,
    )
    return asyncio.run(ConflictAwarePersister(store).upsert(record))


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["services"]["storage"] == "up"
        assert data["services"]["temporal"] == "not configured"

    def test_probes(self, client):
        assert client.get("/ready").json() == {"status": "ready"}
        assert client.get("/live").json() == {"status": "alive"}


class TestImports:

    def test_start_import(self, client, started, db_path):
        response = client.post("/imports", json={
            "start_date": "2024-03-01",
            "end_date": "2024-03-31",
            "employee_ids": ["emp-1", "emp-2"],
        })

        assert response.status_code == 202
        data = response.json()
        assert data["import_id"].startswith("imp-")
        assert data["workflow_id"] == data["import_id"]
        assert data["employee_count"] == 2
        assert started[0].start_date == "2024-03-01"
        assert started[0].employee_ids == ["emp-1", "emp-2"]

        progress = client.get(f"/imports/{data['import_id']}/progress").json()
        assert progress["latest"]["status"] == "pending"
        assert progress["latest"]["total"] == 2

    def test_all_employees(self, client, store, started):
        store.add_employee(Employee(id="emp-9", first_name="Grace", last_name="Hopper"))
        response = client.post("/imports", json={
            "start_date": "2024-03-01",
            "end_date": "2024-03-31",
            "all_employees": True,
        })
        assert response.status_code == 202
        assert started[0].employee_ids == ["emp-9"]

    def test_reversed_period_rejected(self, client, started):
        response = client.post("/imports", json={
            "start_date": "2024-03-31",
            "end_date": "2024-03-01",
            "employee_ids": ["emp-1"],
        })
        assert response.status_code == 422
        assert started == []

    def test_no_employees_rejected(self, client):
        response = client.post("/imports", json={"start_date": "2024-03-01", "end_date": "2024-03-31"})
        assert response.status_code == 400

    def test_progress_history(self, client, db_path):
        init_progress_db(db_path)
        log_progress("imp-x", ImportProgress(import_id="imp-x", status=ImportRunStatus.PROCESSING, total=2), db_path)
        log_progress("imp-x", ImportProgress(
            import_id="imp-x", status=ImportRunStatus.COMPLETED, total=2, current=2, imported=5,
            message="Import completed: 5 attendance records imported",
        ), db_path)

        data = client.get("/imports/imp-x/progress").json()

        assert [e["status"] for e in data["history"]] == ["processing", "completed"]
        assert data["latest"]["imported"] == 5

    def test_unknown_import(self, client):
        assert client.get("/imports/imp-missing/progress").status_code == 404

    def test_starter_failure_recorded_as_error(self, client, db_path):
        async def failing_starter(input, settings):
            raise RuntimeError("temporal down")

        client.app.dependency_overrides[get_import_starter] = lambda: failing_starter
        response = client.post("/imports", json={
            "start_date": "2024-03-01",
            "end_date": "2024-03-31",
            "employee_ids": ["emp-1"],
        })

        assert response.status_code == 503
        import_id = get_latest_import_id(db_path)
        assert import_id in response.json()["detail"]

        data = client.get(f"/imports/{import_id}/progress").json()
        assert [e["status"] for e in data["history"]] == ["pending", "error"]
        assert "temporal down" in data["latest"]["message"]


class TestAttendance:

    def test_list_filters(self, client, store):
        seed_record(store, "2024-03-04")
        seed_record(store, "2024-03-05")
        seed_record(store, "2024-04-01")

        data = client.get("/attendance", params={"start_date": "2024-03-01", "end_date": "2024-03-31"}).json()

        assert [r["date"] for r in data] == ["2024-03-04", "2024-03-05"]
        assert data[0]["status"] == "VALID"

    def test_filter_by_employee(self, client, store):
        seed_record(store)
        assert client.get("/attendance", params={"employee_id": "emp-2"}).json() == []

    def test_correction_marks_record_corrected(self, client, store):
        seed_record(store)

        response = client.put("/attendance/emp-1/2024-03-04/correction", json={"normal_hours": 7.5, "extra_hours": 0})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "CORRECTED"
        assert data["normal_hours"] == 7.5

    def test_corrected_record_survives_reimport(self, client, store):
        seed_record(store)
        client.put("/attendance/emp-1/2024-03-04/correction", json={"normal_hours": 7.5, "extra_hours": 0})

        assert seed_record(store, normal=8.0, extra=3.0) is None
        record = client.get("/attendance", params={"employee_id": "emp-1"}).json()[0]
        assert record["normal_hours"] == 7.5

    def test_correction_of_missing_record(self, client):
        response = client.put("/attendance/emp-1/2024-03-04/correction", json={"normal_hours": 8})
        assert response.status_code == 404

    def test_correction_rejects_negative_hours(self, client, store):
        seed_record(store)
        response = client.put("/attendance/emp-1/2024-03-04/correction", json={"normal_hours": -1})
        assert response.status_code == 422
