"""SQLite attendance store.

Tables:
- employees: local employee directory with contracted minimum hours
- attendance_records: reconciled ledger, UNIQUE(employee_id, date)

Each operation opens its own connection. The async interface methods run the
blocking sqlite calls in a worker thread.
"""

import asyncio
import json
import sqlite3
from pathlib import Path
from typing import List, Optional, Sequence

from core.config import DEFAULT_DB_PATH
from core.models.attendance import (
    AttendanceRecord,
    AttendanceStatus,
    Employee,
    OriginalData,
)
from storage.base import AttendanceStore


MAX_QUERY_IDS = 900


def init_attendance_db(db_path: Path = DEFAULT_DB_PATH) -> None:
    """Create the employees and attendance_records tables if they don't exist."""
    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS employees (
                id TEXT PRIMARY KEY,
                first_name TEXT NOT NULL DEFAULT '',
                last_name TEXT NOT NULL DEFAULT '',
                min_hours REAL NOT NULL DEFAULT 8
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS attendance_records (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                employee_id TEXT NOT NULL,
                employee_name TEXT,
                date TEXT NOT NULL,
                normal_hours REAL NOT NULL,
                extra_hours REAL NOT NULL,
                status TEXT NOT NULL CHECK(status IN ('VALID', 'TO_VERIFY', 'NEEDS_CORRECTION', 'CORRECTED')),
                original_data TEXT,
                last_import_id TEXT,
                UNIQUE(employee_id, date)
            )
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_attendance_date
            ON attendance_records(date)
        """)
        conn.commit()
    finally:
        conn.close()


def _row_to_record(row: sqlite3.Row) -> AttendanceRecord:
    original = json.loads(row["original_data"]) if row["original_data"] else {}
    return AttendanceRecord(
        id=row["id"],
        employee_id=row["employee_id"],
        employee_name=row["employee_name"] or "",
        date=row["date"],
        normal_hours=row["normal_hours"],
        extra_hours=row["extra_hours"],
        status=AttendanceStatus(row["status"]),
        original_data=OriginalData(**original),
        last_import_id=row["last_import_id"],
    )


def _row_to_employee(row: sqlite3.Row) -> Employee:
    return Employee(
        id=row["id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        min_hours=row["min_hours"],
    )


class SQLiteAttendanceStore(AttendanceStore):
    """AttendanceStore backed by a SQLite file.

    Usage:
        store = SQLiteAttendanceStore(Path("attendance.db"))
        store.add_employee(Employee(id="emp-1", first_name="Ada", last_name="L", min_hours=8))
        record = await store.get_attendance_record("emp-1", "2024-03-01")
    """

    def __init__(self, db_path: Path = DEFAULT_DB_PATH, initialize: bool = True):
        self.db_path = Path(db_path)
        if initialize:
            init_attendance_db(self.db_path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    # =========================================================================
    # Employee directory
    # =========================================================================

    def add_employee(self, employee: Employee) -> Employee:
        """Insert or replace an employee directory entry."""
        conn = self._connect()
        try:
            conn.execute("""
                INSERT OR REPLACE INTO employees (id, first_name, last_name, min_hours)
                VALUES (?, ?, ?, ?)
            """, (employee.id, employee.first_name, employee.last_name, employee.min_hours))
            conn.commit()
            return employee
        finally:
            conn.close()

    def _list_employees(self, ids: Sequence[str]) -> List[Employee]:
        if not ids:
            return []
        employees: List[Employee] = []
        conn = self._connect()
        try:
            # SQLite limits the number of bound variables per statement
            for start in range(0, len(ids), MAX_QUERY_IDS):
                chunk = tuple(ids[start:start + MAX_QUERY_IDS])
                placeholders = ",".join("?" for _ in chunk)
                cursor = conn.execute(
                    f"SELECT * FROM employees WHERE id IN ({placeholders})",
                    chunk,
                )
                employees.extend(_row_to_employee(row) for row in cursor.fetchall())
        finally:
            conn.close()
        return sorted(employees, key=lambda e: (e.last_name, e.first_name))

    async def list_employees(self, ids: Sequence[str]) -> List[Employee]:
        return await asyncio.to_thread(self._list_employees, list(ids))

    def list_employee_ids(self) -> List[str]:
        """IDs of every employee in the directory."""
        conn = self._connect()
        try:
            cursor = conn.execute("SELECT id FROM employees ORDER BY last_name, first_name")
            return [row["id"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # =========================================================================
    # Attendance ledger
    # =========================================================================

    def _get_record(self, employee_id: str, date: str) -> Optional[AttendanceRecord]:
        conn = self._connect()
        try:
            cursor = conn.execute("""
                SELECT * FROM attendance_records
                WHERE employee_id = ? AND date = ?
            """, (employee_id, date))
            row = cursor.fetchone()
            return _row_to_record(row) if row else None
        finally:
            conn.close()

    async def get_attendance_record(self, employee_id: str, date: str) -> Optional[AttendanceRecord]:
        return await asyncio.to_thread(self._get_record, employee_id, date)

    def _upsert_record(self, record: AttendanceRecord) -> AttendanceRecord:
        conn = self._connect()
        try:
            conn.execute("""
                INSERT INTO attendance_records
                (employee_id, employee_name, date, normal_hours, extra_hours, status, original_data, last_import_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(employee_id, date) DO UPDATE SET
                    employee_name = excluded.employee_name,
                    normal_hours = excluded.normal_hours,
                    extra_hours = excluded.extra_hours,
                    status = excluded.status,
                    original_data = excluded.original_data,
                    last_import_id = excluded.last_import_id
            """, (
                record.employee_id,
                record.employee_name,
                record.date,
                record.normal_hours,
                record.extra_hours,
                AttendanceStatus(record.status).value,
                json.dumps(record.original_data.model_dump(mode="json")),
                record.last_import_id,
            ))
            conn.commit()
        finally:
            conn.close()

        stored = self._get_record(record.employee_id, record.date)
        if stored is None:
            raise sqlite3.DatabaseError(
                f"Record for {record.employee_id} on {record.date} missing after upsert"
            )
        return stored

    async def upsert_attendance_record(self, record: AttendanceRecord) -> AttendanceRecord:
        return await asyncio.to_thread(self._upsert_record, record)

    def list_attendance_records(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> List[AttendanceRecord]:
        """List records, optionally filtered by date range and employee."""
        clauses = []
        params: list = []
        if start_date:
            clauses.append("date >= ?")
            params.append(start_date)
        if end_date:
            clauses.append("date <= ?")
            params.append(end_date)
        if employee_id:
            clauses.append("employee_id = ?")
            params.append(employee_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        conn = self._connect()
        try:
            cursor = conn.execute(
                f"SELECT * FROM attendance_records {where} ORDER BY date, employee_id",
                tuple(params),
            )
            return [_row_to_record(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def apply_correction(
        self,
        employee_id: str,
        date: str,
        normal_hours: float,
        extra_hours: float,
    ) -> Optional[AttendanceRecord]:
        """Record a human correction; the record becomes CORRECTED.

        This is the out-of-band path that protects a day from re-imports.

        Returns:
            The corrected record, or None if no record exists for the key
        """
        conn = self._connect()
        try:
            cursor = conn.execute("""
                UPDATE attendance_records
                SET normal_hours = ?, extra_hours = ?, status = ?
                WHERE employee_id = ? AND date = ?
            """, (normal_hours, extra_hours, AttendanceStatus.CORRECTED.value, employee_id, date))
            conn.commit()
            if cursor.rowcount == 0:
                return None
        finally:
            conn.close()
        return self._get_record(employee_id, date)
