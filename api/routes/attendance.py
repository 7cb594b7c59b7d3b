"""Attendance ledger endpoints."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from core.models.attendance import AttendanceRecord
from core.observability.logging import get_logger
from storage.sqlite_store import SQLiteAttendanceStore
from api.services.imports import get_store


router = APIRouter()
logger = get_logger(__name__)


class CorrectionRequest(BaseModel):
    """Hours entered by a reviewer."""
    normal_hours: float = Field(..., ge=0)
    extra_hours: float = Field(0.0, ge=0)


@router.get("", response_model=List[AttendanceRecord])
def list_attendance(
    start_date: Optional[date] = Query(None, description="First day (inclusive)"),
    end_date: Optional[date] = Query(None, description="Last day (inclusive)"),
    employee_id: Optional[str] = Query(None, description="Filter by employee"),
    store: SQLiteAttendanceStore = Depends(get_store),
) -> List[AttendanceRecord]:
    """List attendance records ordered by date."""
    return store.list_attendance_records(
        start_date=start_date.isoformat() if start_date else None,
        end_date=end_date.isoformat() if end_date else None,
        employee_id=employee_id,
    )


@router.put("/{employee_id}/{work_date}/correction", response_model=AttendanceRecord)
def correct_attendance(
    employee_id: str,
    work_date: date,
    request: CorrectionRequest,
    store: SQLiteAttendanceStore = Depends(get_store),
) -> AttendanceRecord:
    """Correct a record by hand.

    The record becomes CORRECTED and later imports leave it untouched.
    """
    record = store.apply_correction(
        employee_id,
        work_date.isoformat(),
        request.normal_hours,
        request.extra_hours,
    )
    if record is None:
        raise HTTPException(
            status_code=404,
            detail=f"No attendance for {employee_id} on {work_date.isoformat()}",
        )
    logger.info(f"Attendance for {employee_id} on {work_date.isoformat()} corrected")
    return record
