"""Batch orchestrator for attendance imports.

Resolves the requested employees, walks them in fixed-size batches and runs
the per-employee import inside each batch through a bounded worker pool.
Progress is reported through a caller-owned ProgressTracker; the orchestrator
itself keeps no state between runs.

One employee's failure never aborts the run. Resolution failures do.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from attendance_import.importer import EmployeeImporter, EmployeeImportResult
from attendance_import.progress import ProgressSink, ProgressTracker
from connectors.attendance_source import AttendanceSource
from core.config import DEFAULT_BATCH_SIZE, DEFAULT_CONCURRENCY
from core.errors import ImportCancelledError, NoEmployeesFoundError
from core.models.attendance import AttendanceRecord, Employee, ImportRunStatus
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import get_metrics
from storage.base import AttendanceStore


logger = get_logger(__name__)


@dataclass
class EmployeeOutcome:
    """What one worker reports back for one employee."""
    employee: Employee
    result: Optional[EmployeeImportResult] = None
    error: Optional[Exception] = None


@dataclass
class _RunState:
    records: List[AttendanceRecord] = field(default_factory=list)
    current: int = 0
    failed: int = 0


def check_period(start_date: str, end_date: str) -> None:
    """Raise ValueError unless both dates are ISO dates and start <= end."""
    try:
        start = date.fromisoformat(start_date)
        end = date.fromisoformat(end_date)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid import period {start_date!r} - {end_date!r}: {e}") from e
    if start > end:
        raise ValueError(f"start_date {start_date} is after end_date {end_date}")


def partition(items: Sequence, size: int) -> List[list]:
    """Split items into consecutive chunks of at most ``size``."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class AttendanceImporter:
    """Imports attendance for a set of employees over a period.

    Usage:
        importer = AttendanceImporter(store, source, on_progress=print)
        records = await importer.import_for_period("2024-03-01", "2024-03-31", ["emp-1", "emp-2"])
    """

    BATCH_SIZE = DEFAULT_BATCH_SIZE

    def __init__(
        self,
        store: AttendanceStore,
        source: AttendanceSource,
        batch_size: int = BATCH_SIZE,
        concurrency: int = DEFAULT_CONCURRENCY,
        on_progress: Optional[ProgressSink] = None,
        employee_importer: Optional[EmployeeImporter] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.store = store
        self.source = source
        self.batch_size = batch_size
        self.concurrency = concurrency
        self.on_progress = on_progress
        self.employee_importer = employee_importer or EmployeeImporter(source, store)
        self.metrics = get_metrics()

    async def import_for_period(
        self,
        start_date: str,
        end_date: str,
        employee_ids: Optional[Sequence[str]],
        *,
        progress: Optional[ProgressTracker] = None,
        cancel_event: Optional[asyncio.Event] = None,
        import_id: Optional[str] = None,
    ) -> List[AttendanceRecord]:
        """Import every requested employee and return all persisted records.

        Records of one employee are contiguous; employees appear in completion
        order within a batch and batches in order.

        Raises:
            ValueError: If the period is malformed or reversed
            NoEmployeesFoundError: If no employee could be resolved
            ImportCancelledError: If cancel_event was set before the run finished
        """
        tracker = progress or ProgressTracker(import_id=import_id)
        if self.on_progress is not None:
            tracker.subscribe(self.on_progress)

        with with_correlation(import_id=tracker.import_id):
            started = time.monotonic()
            self.metrics.record_run_started(tracker.import_id)

            try:
                check_period(start_date, end_date)
                employees = await self._resolve_employees(employee_ids)
            except Exception as e:
                logger.error(f"Import could not start: {e}")
                tracker.update(status=ImportRunStatus.ERROR, message=str(e) or type(e).__name__)
                self.metrics.record_run_failed(tracker.import_id)
                raise

            total = len(employees)
            logger.info(
                f"Importing attendance {start_date}..{end_date} for {total} employees",
                extra_fields={"total": total, "batch_size": self.batch_size},
            )
            tracker.update(
                status=ImportRunStatus.PROCESSING,
                total=total,
                current=0,
                message=f"Importing {total} employees",
            )

            state = _RunState()
            try:
                batches = partition(employees, self.batch_size)
                for index, batch in enumerate(batches, start=1):
                    if _is_set(cancel_event):
                        break
                    logger.debug(f"Starting batch {index}/{len(batches)} ({len(batch)} employees)")
                    await self._run_batch(batch, start_date, end_date, tracker, state, cancel_event)
            except asyncio.CancelledError:
                tracker.update(status=ImportRunStatus.ERROR, message="Import cancelled")
                self.metrics.record_run_failed(tracker.import_id, cancelled=True)
                raise
            except Exception as e:
                logger.exception(f"Import failed: {e}")
                tracker.update(status=ImportRunStatus.ERROR, message=str(e) or type(e).__name__)
                self.metrics.record_run_failed(tracker.import_id)
                raise

            if _is_set(cancel_event) and state.current < total:
                message = f"Import cancelled after {state.current} of {total} employees"
                logger.warning(message)
                tracker.update(status=ImportRunStatus.ERROR, message=message)
                self.metrics.record_run_failed(tracker.import_id, cancelled=True)
                raise ImportCancelledError(message, records=state.records)

            message = f"Import completed: {len(state.records)} attendance records imported"
            if state.failed:
                message += f", {state.failed} employee(s) failed"
            tracker.update(status=ImportRunStatus.COMPLETED, message=message)

            duration_ms = (time.monotonic() - started) * 1000
            self.metrics.record_run_completed(tracker.import_id, duration_ms)
            logger.info(message, extra_fields={
                "records": len(state.records),
                "failed": state.failed,
                "duration_ms": round(duration_ms, 1),
            })
            return state.records

    async def _resolve_employees(self, employee_ids: Optional[Sequence[str]]) -> List[Employee]:
        ids = list(dict.fromkeys(employee_ids or []))
        if not ids:
            raise NoEmployeesFoundError("No employee IDs given")

        employees = await self.store.list_employees(ids)
        if not employees:
            raise NoEmployeesFoundError(f"No employees found for {len(ids)} requested IDs")

        missing = set(ids) - {e.id for e in employees}
        if missing:
            logger.warning(f"{len(missing)} requested employees are unknown: {sorted(missing)}")
        return list(employees)

    async def _run_batch(
        self,
        batch: List[Employee],
        start_date: str,
        end_date: str,
        tracker: ProgressTracker,
        state: _RunState,
        cancel_event: Optional[asyncio.Event],
    ) -> None:
        pending: asyncio.Queue = asyncio.Queue()
        for employee in batch:
            pending.put_nowait(employee)
        results: asyncio.Queue = asyncio.Queue()

        worker_count = min(self.concurrency, len(batch))
        workers = [
            asyncio.create_task(self._worker(pending, results, start_date, end_date, cancel_event))
            for _ in range(worker_count)
        ]

        finished = 0
        try:
            while finished < worker_count:
                outcome = await results.get()
                if outcome is None:
                    finished += 1
                    continue
                self._record_outcome(outcome, tracker, state)
        finally:
            for worker in workers:
                if not worker.done():
                    worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(
        self,
        pending: asyncio.Queue,
        results: asyncio.Queue,
        start_date: str,
        end_date: str,
        cancel_event: Optional[asyncio.Event],
    ) -> None:
        try:
            while not _is_set(cancel_event):
                try:
                    employee = pending.get_nowait()
                except asyncio.QueueEmpty:
                    break
                outcome = await self._import_one(employee, start_date, end_date)
                results.put_nowait(outcome)
        finally:
            # One sentinel per worker tells the consumer it is done
            results.put_nowait(None)

    async def _import_one(self, employee: Employee, start_date: str, end_date: str) -> EmployeeOutcome:
        try:
            result = await self.employee_importer.import_employee(employee, start_date, end_date)
        except Exception as e:
            return EmployeeOutcome(employee=employee, error=e)
        return EmployeeOutcome(employee=employee, result=result)

    def _record_outcome(self, outcome: EmployeeOutcome, tracker: ProgressTracker, state: _RunState) -> None:
        employee = outcome.employee
        name = employee.full_name or employee.id
        state.current += 1

        if outcome.error is not None:
            state.failed += 1
            self.metrics.record_employee_failed()
            logger.error(
                f"Import failed for employee {employee.id}: {outcome.error}",
                extra_fields={"employee_id": employee.id, "error_type": type(outcome.error).__name__},
            )
            message = f"Error for {name}: {outcome.error}"
        else:
            result = outcome.result
            state.records.extend(result.records)
            self.metrics.record_employee_imported(len(result.records), len(result.protected))
            for skip in result.skipped:
                self.metrics.record_day_skipped(skip.reason)
            message = f"Imported {len(result.records)} records for {name}"
            if result.protected:
                message += f" ({len(result.protected)} corrected days kept)"

        tracker.update(
            current=state.current,
            imported=len(state.records),
            failed=state.failed,
            message=message,
        )


def _is_set(event: Optional[asyncio.Event]) -> bool:
    return event is not None and event.is_set()
