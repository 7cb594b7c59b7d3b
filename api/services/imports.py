"""Import run services for the API.

Starting a run goes through Temporal; reading progress and records goes
straight to the SQLite database the worker writes to.
"""

from functools import lru_cache
from typing import Awaitable, Callable

from activities.import_attendance import ImportAttendanceInput
from core.config import Settings, load_settings
from storage.sqlite_store import SQLiteAttendanceStore
from temporal_client import get_temporal_client
from workflows.attendance_import_workflow import AttendanceImportWorkflow


ImportStarter = Callable[[ImportAttendanceInput, Settings], Awaitable[str]]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings dependency (loaded once per process)."""
    return load_settings()


def get_store() -> SQLiteAttendanceStore:
    """Attendance store dependency."""
    return SQLiteAttendanceStore(get_settings().db_path)


async def start_import_workflow(input: ImportAttendanceInput, settings: Settings) -> str:
    """Start an AttendanceImportWorkflow and return its workflow ID.

    The workflow ID is the import ID, so starting the same import twice is
    rejected by Temporal.
    """
    client = await get_temporal_client(settings)
    handle = await client.start_workflow(
        AttendanceImportWorkflow.run,
        input,
        id=input.import_id,
        task_queue=settings.task_queue,
    )
    return handle.id


def get_import_starter() -> ImportStarter:
    """Import starter dependency."""
    return start_import_workflow
