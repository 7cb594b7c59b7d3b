"""Attendance Import Workflow.

Hosts one attendance import run durably. The run itself happens in a single
activity; the workflow only schedules it and returns its summary.
"""

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.workflow import ActivityCancellationType

with workflow.unsafe.imports_passed_through():
    from activities.import_attendance import (
        import_attendance_period,
        ImportAttendanceInput,
    )


# A run may cover thousands of employees
IMPORT_TIMEOUT = timedelta(hours=4)
# Longest gap between two employee completions (includes client retries)
HEARTBEAT_TIMEOUT = timedelta(minutes=5)


@workflow.defn
class AttendanceImportWorkflow:
    """Workflow for importing attendance for a period.

    The import is not retried: a failed run reports its error through the
    progress log and is restarted by the caller. Re-running is safe because
    upserts are keyed on (employee_id, date).
    """

    @workflow.run
    async def run(self, input: ImportAttendanceInput) -> dict:
        """Execute the attendance import.

        Args:
            input: ImportAttendanceInput with the period and employees

        Returns:
            dict with the final progress snapshot and record count
        """
        workflow.logger.info(
            f"Starting attendance import {input.import_id} "
            f"({input.start_date}..{input.end_date}, {len(input.employee_ids)} employees)"
        )

        result = await workflow.execute_activity(
            import_attendance_period,
            input,
            start_to_close_timeout=IMPORT_TIMEOUT,
            heartbeat_timeout=HEARTBEAT_TIMEOUT,
            retry_policy=RetryPolicy(maximum_attempts=1),
            cancellation_type=ActivityCancellationType.WAIT_CANCELLATION_COMPLETED,
        )

        workflow.logger.info(f"Attendance import {input.import_id} finished: {result.get('message')}")
        return result
