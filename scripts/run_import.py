#!/usr/bin/env python
"""Run an attendance import in-process.

Usage:
    python scripts/run_import.py --start 2024-03-01 --end 2024-03-31 --employee emp-1 --employee emp-2
    python scripts/run_import.py --start 2024-03-01 --end 2024-03-31 --all

Progress is printed to the console and appended to the progress log, so
scripts/watch_import.py can follow the run from another terminal.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from attendance_import.orchestrator import AttendanceImporter
from attendance_import.progress import ProgressTracker
from connectors.jibble.source import JibbleTimesheetSource
from core.config import load_settings
from core.errors import AttendanceImportError
from core.models.attendance import ImportProgress
from core.observability.logging import configure_logging, get_logger
from storage.progress_log import init_progress_db, log_progress
from storage.sqlite_store import SQLiteAttendanceStore


logger = get_logger(__name__)


def print_progress(snapshot: ImportProgress) -> None:
    """Console progress sink."""
    if snapshot.total:
        print(f"  [{snapshot.current}/{snapshot.total}] {snapshot.status.value}: {snapshot.message}")
    else:
        print(f"  {snapshot.status.value}: {snapshot.message}")


async def run_import(args: argparse.Namespace) -> int:
    settings = load_settings()
    store = SQLiteAttendanceStore(settings.db_path)
    init_progress_db(settings.db_path)

    employee_ids = args.employee or []
    if args.all:
        employee_ids = store.list_employee_ids()

    source = JibbleTimesheetSource.from_settings(settings)
    tracker = ProgressTracker(sinks=[print_progress])
    tracker.subscribe(lambda snapshot: log_progress(tracker.import_id, snapshot, settings.db_path))

    importer = AttendanceImporter(
        store,
        source,
        batch_size=args.batch_size or settings.batch_size,
        concurrency=args.concurrency or settings.concurrency,
    )

    print("=" * 60)
    print(f"Import {tracker.import_id}: {args.start} .. {args.end}")
    print("=" * 60)

    try:
        records = await importer.import_for_period(args.start, args.end, employee_ids, progress=tracker)
    except (AttendanceImportError, ValueError) as e:
        print(f"\nImport failed: {e}")
        return 1
    finally:
        await source.close()

    print()
    print(f"Done: {len(records)} records imported")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Import Jibble attendance for a period")
    parser.add_argument("--start", required=True, help="First day (YYYY-MM-DD)")
    parser.add_argument("--end", required=True, help="Last day (YYYY-MM-DD)")
    parser.add_argument("--employee", action="append", help="Employee ID to import (repeatable)")
    parser.add_argument("--all", action="store_true", help="Import every employee in the directory")
    parser.add_argument("--batch-size", type=int, default=None, help="Employees per batch (default: 50)")
    parser.add_argument("--concurrency", type=int, default=None, help="Concurrent employees per batch")

    args = parser.parse_args()

    settings = load_settings()
    configure_logging(
        level=getattr(logging, settings.log_level, logging.INFO),
        json_format=settings.log_json,
    )

    sys.exit(asyncio.run(run_import(args)))


if __name__ == "__main__":
    main()
