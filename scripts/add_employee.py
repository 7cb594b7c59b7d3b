#!/usr/bin/env python
"""Add or update an employee in the local directory.

Usage:
    python scripts/add_employee.py <jibble_person_id> --first Ada --last Lovelace --min-hours 8
"""

import argparse
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.config import load_settings
from core.models.attendance import Employee
from storage.sqlite_store import SQLiteAttendanceStore


def main():
    parser = argparse.ArgumentParser(description="Add an employee to the attendance directory")
    parser.add_argument("employee_id", help="Jibble person ID")
    parser.add_argument("--first", default="", help="First name")
    parser.add_argument("--last", default="", help="Last name")
    parser.add_argument("--min-hours", type=float, default=8.0, help="Contracted minimum daily hours")

    args = parser.parse_args()

    store = SQLiteAttendanceStore(load_settings().db_path)
    employee = store.add_employee(Employee(
        id=args.employee_id,
        first_name=args.first,
        last_name=args.last,
        min_hours=args.min_hours,
    ))
    print(f"Saved {employee.id} ({employee.full_name or 'no name'}), min {employee.min_hours}h/day")


if __name__ == "__main__":
    main()
