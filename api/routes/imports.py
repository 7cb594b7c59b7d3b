"""Import run endpoints.

Starts attendance imports on the worker and reports their persisted progress.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from activities.import_attendance import ImportAttendanceInput
from attendance_import.progress import new_import_id
from core.config import Settings
from core.models.attendance import ImportProgress, ImportRunStatus
from core.observability.logging import get_logger
from storage.progress_log import get_progress, init_progress_db, log_progress
from storage.sqlite_store import SQLiteAttendanceStore
from api.services.imports import ImportStarter, get_import_starter, get_settings, get_store


router = APIRouter()
logger = get_logger(__name__)


class ImportRequest(BaseModel):
    """Request to start an attendance import."""
    start_date: date
    end_date: date
    employee_ids: List[str] = Field(default_factory=list, description="Employees to import")
    all_employees: bool = Field(False, description="Import every employee in the directory")
    batch_size: Optional[int] = Field(None, ge=1)
    concurrency: Optional[int] = Field(None, ge=1)


class ImportStartedResponse(BaseModel):
    """Response after starting an import."""
    import_id: str
    workflow_id: str
    status: str
    employee_count: int


class ProgressEntry(BaseModel):
    """One persisted progress snapshot."""
    id: int
    status: str
    total: int
    current: int
    imported: int
    failed: int
    message: Optional[str] = None
    created_at: str


class ImportProgressResponse(BaseModel):
    """Latest progress of an import plus its history."""
    import_id: str
    latest: ProgressEntry
    history: List[ProgressEntry]


@router.post("", response_model=ImportStartedResponse, status_code=202)
async def start_import(
    request: ImportRequest,
    settings: Settings = Depends(get_settings),
    store: SQLiteAttendanceStore = Depends(get_store),
    starter: ImportStarter = Depends(get_import_starter),
) -> ImportStartedResponse:
    """Start an attendance import for a period.

    The run happens on the worker; follow it with GET /imports/{import_id}/progress.
    """
    if request.start_date > request.end_date:
        raise HTTPException(status_code=422, detail="start_date must not be after end_date")

    employee_ids = list(request.employee_ids)
    if request.all_employees:
        employee_ids = store.list_employee_ids()
    if not employee_ids:
        raise HTTPException(status_code=400, detail="No employees to import")

    import_id = new_import_id()
    input = ImportAttendanceInput(
        import_id=import_id,
        start_date=request.start_date.isoformat(),
        end_date=request.end_date.isoformat(),
        employee_ids=employee_ids,
        batch_size=request.batch_size,
        concurrency=request.concurrency,
    )

    init_progress_db(settings.db_path)
    log_progress(
        import_id,
        ImportProgress(import_id=import_id, total=len(employee_ids), message="Import queued"),
        settings.db_path,
    )

    try:
        workflow_id = await starter(input, settings)
    except Exception as e:
        logger.error(f"Failed to start import {import_id}: {e}", exc_info=True)
        log_progress(
            import_id,
            ImportProgress(
                import_id=import_id,
                total=len(employee_ids),
                status=ImportRunStatus.ERROR,
                message=f"Could not start import: {e}",
            ),
            settings.db_path,
        )
        raise HTTPException(status_code=503, detail=f"Could not start import {import_id}: {e}")

    logger.info(f"Started import {import_id} for {len(employee_ids)} employees")
    return ImportStartedResponse(
        import_id=import_id,
        workflow_id=workflow_id,
        status="pending",
        employee_count=len(employee_ids),
    )


@router.get("/{import_id}/progress", response_model=ImportProgressResponse)
def get_import_progress(
    import_id: str,
    settings: Settings = Depends(get_settings),
) -> ImportProgressResponse:
    """Get the progress log of an import run."""
    init_progress_db(settings.db_path)
    entries = get_progress(import_id, settings.db_path)
    if not entries:
        raise HTTPException(status_code=404, detail=f"Import {import_id} not found")

    history = [ProgressEntry(**entry) for entry in entries]
    return ImportProgressResponse(import_id=import_id, latest=history[-1], history=history)
