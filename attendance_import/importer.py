"""Per-employee timesheet import.

Fetches one employee's timesheets for a period, turns each timesheet's first
daily summary into a candidate AttendanceRecord, validates it and persists it
through the conflict-aware persister.

Day-level failures (unparsable hours, invalid candidate, store error) are
captured as DaySkip values and never stop the other days. A failing fetch is
an employee-level failure and raises ExternalFetchError.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from attendance_import.hours import parse_hours
from attendance_import.persister import ConflictAwarePersister
from attendance_import.status import classify, split_hours
from attendance_import.validators import validate_attendance_record
from connectors.attendance_source import AttendanceSource
from core.errors import (
    ExternalFetchError,
    ParseError,
    PersistenceError,
    TimesheetDecodeError,
    ValidationError,
)
from core.models.attendance import (
    AttendanceRecord,
    DailySummary,
    Employee,
    OriginalData,
    TimesheetEntry,
)
from core.observability.logging import get_logger, with_correlation
from storage.base import AttendanceStore


logger = get_logger(__name__)

MISSING_HOURS = "MISSING_HOURS"


@dataclass
class DaySkip:
    """A day that was not imported, and why."""
    date: Optional[str]
    reason: str
    message: str


@dataclass
class DayOutcome:
    record: Optional[AttendanceRecord] = None
    protected_date: Optional[str] = None
    skip: Optional[DaySkip] = None


@dataclass
class EmployeeImportResult:
    """Structured result of importing one employee.

    Attributes:
        employee_id: Employee that was imported
        records: Persisted records, in source order
        skipped: Days dropped because of missing hours or a day-level error
        protected: Dates left untouched because the stored record is CORRECTED
        no_data: True when the source returned nothing usable
    """
    employee_id: str
    records: List[AttendanceRecord] = field(default_factory=list)
    skipped: List[DaySkip] = field(default_factory=list)
    protected: List[str] = field(default_factory=list)
    no_data: bool = False


def build_candidate(
    employee: Employee,
    daily: DailySummary,
    total_hours: float,
    source: str = "JIBBLE",
) -> AttendanceRecord:
    """Build the candidate record for one day of work."""
    normal_hours, extra_hours = split_hours(total_hours, employee.min_hours)
    return AttendanceRecord(
        employee_id=employee.id,
        employee_name=employee.full_name,
        date=daily.date or "",
        normal_hours=normal_hours,
        extra_hours=extra_hours,
        status=classify(total_hours, employee.min_hours),
        original_data=OriginalData(
            start_time=daily.first_in,
            end_time=daily.last_out,
            total_hours=total_hours,
            source=source,
        ),
        last_import_id=str(uuid.uuid4()),
    )


class EmployeeImporter:
    """Imports the timesheets of one employee at a time.

    Usage:
        importer = EmployeeImporter(source, store)
        records = await importer.import_for_employee(employee, "2024-03-01", "2024-03-31")
    """

    def __init__(
        self,
        source: AttendanceSource,
        store: Optional[AttendanceStore] = None,
        persister: Optional[ConflictAwarePersister] = None,
    ):
        if persister is None:
            if store is None:
                raise ValueError("Either store or persister is required")
            persister = ConflictAwarePersister(store)
        self.source = source
        self.persister = persister

    async def import_for_employee(
        self,
        employee: Employee,
        start_date: str,
        end_date: str,
    ) -> List[AttendanceRecord]:
        """Import an employee's period and return the persisted records.

        Raises:
            ExternalFetchError: If the timesheets could not be fetched
        """
        result = await self.import_employee(employee, start_date, end_date)
        return result.records

    async def import_employee(
        self,
        employee: Employee,
        start_date: str,
        end_date: str,
    ) -> EmployeeImportResult:
        """Import an employee's period and return the structured result.

        Raises:
            ExternalFetchError: If the timesheets could not be fetched
        """
        with with_correlation(employee_id=employee.id):
            result = EmployeeImportResult(employee_id=employee.id)

            timesheets = await self._fetch(employee, start_date, end_date)
            if not timesheets:
                logger.info(f"No timesheets found for employee {employee.id}")
                result.no_data = True
                return result

            # Provider convention: one summary day per timesheet entry
            days = [entry.daily[0] for entry in timesheets if entry.daily]
            outcomes = await asyncio.gather(*(self._import_day(employee, daily) for daily in days))

            for outcome in outcomes:
                if outcome.record is not None:
                    result.records.append(outcome.record)
                elif outcome.protected_date is not None:
                    result.protected.append(outcome.protected_date)
                elif outcome.skip is not None:
                    result.skipped.append(outcome.skip)

            logger.info(
                f"Imported {len(result.records)} records for employee {employee.id}",
                extra_fields={
                    "records": len(result.records),
                    "protected": len(result.protected),
                    "skipped": len(result.skipped),
                },
            )
            return result

    async def _fetch(self, employee: Employee, start_date: str, end_date: str) -> List[TimesheetEntry]:
        source_name = getattr(self.source, "name", type(self.source).__name__)
        try:
            timesheets = await self.source.fetch_timesheets(employee.id, start_date, end_date)
        except ExternalFetchError:
            raise
        except TimesheetDecodeError as e:
            logger.warning(f"Ignoring malformed timesheets for employee {employee.id}: {e}")
            return []
        except Exception as e:
            raise ExternalFetchError(
                f"Failed to fetch timesheets from {source_name} for {employee.id}: {e}",
                employee_id=employee.id,
            ) from e
        return list(timesheets or [])

    async def _import_day(self, employee: Employee, daily: DailySummary) -> DayOutcome:
        with with_correlation(work_date=daily.date):
            if daily.payroll_hours is None or daily.payroll_hours == "":
                logger.info(f"Skipping {daily.date} for employee {employee.id}: no payroll hours")
                return DayOutcome(skip=DaySkip(daily.date, MISSING_HOURS, "No payroll hours"))

            try:
                total_hours = parse_hours(daily.payroll_hours)
                candidate = build_candidate(
                    employee,
                    daily,
                    total_hours,
                    source=getattr(self.source, "name", "JIBBLE"),
                )
                validate_attendance_record(candidate)
                persisted = await self.persister.upsert(candidate)
            except (ParseError, ValidationError, PersistenceError) as e:
                logger.warning(f"Skipping {daily.date} for employee {employee.id}: {e}")
                return DayOutcome(skip=DaySkip(daily.date, e.code, str(e)))

            if persisted is None:
                return DayOutcome(protected_date=candidate.date)
            return DayOutcome(record=persisted)
