"""Attendance import activity.

Runs one import run inside a Temporal activity. Every progress snapshot is
appended to the progress log and sent as the activity heartbeat, so the API
can report progress and Temporal can deliver cancellation.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from temporalio import activity

from attendance_import.orchestrator import AttendanceImporter
from attendance_import.progress import ProgressTracker
from connectors.attendance_source import AttendanceSource
from connectors.jibble.source import JibbleTimesheetSource
from core.config import Settings, load_settings
from core.errors import ImportCancelledError
from core.models.attendance import ImportProgress, ImportRunStatus
from core.observability.logging import with_correlation
from storage.progress_log import init_progress_db, log_progress
from storage.sqlite_store import SQLiteAttendanceStore


@dataclass
class ImportAttendanceInput:
    """Input for import_attendance_period activity.

    Attributes:
        import_id: Import run ID (used for progress and log correlation)
        start_date: First day of the period (YYYY-MM-DD)
        end_date: Last day of the period (YYYY-MM-DD)
        employee_ids: Employees to import
        batch_size: Employees per batch (defaults to IMPORT_BATCH_SIZE)
        concurrency: Concurrent employees per batch (defaults to IMPORT_CONCURRENCY)
        db_path: SQLite database (defaults to ATTENDANCE_DB_PATH)
    """
    import_id: str
    start_date: str
    end_date: str
    employee_ids: List[str] = field(default_factory=list)
    batch_size: Optional[int] = None
    concurrency: Optional[int] = None
    db_path: Optional[str] = None


def create_source(settings: Settings) -> AttendanceSource:
    """Build the attendance source used by the activity."""
    return JibbleTimesheetSource.from_settings(settings)


def _summary(snapshot: ImportProgress, record_count: int) -> dict:
    summary = snapshot.model_dump(mode="json")
    summary["records"] = record_count
    return summary


@activity.defn
async def import_attendance_period(input: ImportAttendanceInput) -> dict:
    """Import attendance for a period and return the final progress summary.

    Cancelling the activity stops new employee imports; employees already in
    flight finish before the cancellation is re-raised.
    """
    settings = load_settings()
    db_path = Path(input.db_path) if input.db_path else settings.db_path
    init_progress_db(db_path)

    def record_progress(snapshot: ImportProgress) -> None:
        log_progress(input.import_id, snapshot, db_path)
        activity.heartbeat(snapshot.model_dump(mode="json"))

    tracker = ProgressTracker(import_id=input.import_id, sinks=[record_progress])

    try:
        store = SQLiteAttendanceStore(db_path)
        source = create_source(settings)
    except Exception as e:
        activity.logger.error(f"Import {input.import_id} could not start: {e}")
        tracker.update(
            status=ImportRunStatus.ERROR,
            total=len(input.employee_ids),
            message=f"Import could not start: {e}",
        )
        raise

    importer = AttendanceImporter(
        store,
        source,
        batch_size=input.batch_size or settings.batch_size,
        concurrency=input.concurrency or settings.concurrency,
    )
    cancel_event = asyncio.Event()

    activity.logger.info(
        f"Importing attendance {input.start_date}..{input.end_date} "
        f"for {len(input.employee_ids)} employees (import {input.import_id})"
    )

    info = activity.info()
    with with_correlation(
        import_id=input.import_id,
        workflow_id=info.workflow_id,
        activity_name=info.activity_type,
    ):
        task = asyncio.create_task(
            importer.import_for_period(
                input.start_date,
                input.end_date,
                input.employee_ids,
                progress=tracker,
                cancel_event=cancel_event,
            )
        )

    try:
        records = await asyncio.shield(task)
    except asyncio.CancelledError:
        activity.logger.warning(f"Import {input.import_id} cancelled, draining in-flight employees")
        cancel_event.set()
        try:
            await task
        except ImportCancelledError as e:
            activity.logger.info(f"Import {input.import_id} stopped with {len(e.records)} records persisted")
        raise
    finally:
        await source.close()

    activity.logger.info(f"Import {input.import_id} finished: {tracker.snapshot.message}")
    return _summary(tracker.snapshot, len(records))
