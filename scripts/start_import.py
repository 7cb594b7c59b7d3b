"""Start an AttendanceImportWorkflow on Temporal.

This script connects to Temporal, starts an import for a period and waits for
the result. Follow progress with scripts/watch_import.py.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from activities.import_attendance import ImportAttendanceInput
from attendance_import.progress import new_import_id
from core.config import load_settings
from core.observability.logging import configure_logging, get_logger
from temporal_client import get_temporal_client
from workflows.attendance_import_workflow import AttendanceImportWorkflow


logger = get_logger(__name__)


async def start_import_workflow(start_date: str, end_date: str, employee_ids: list) -> dict:
    """Start an import workflow and return its result.

    Args:
        start_date: First day (YYYY-MM-DD)
        end_date: Last day (YYYY-MM-DD)
        employee_ids: Employees to import

    Returns:
        dict: Final progress summary from the workflow
    """
    settings = load_settings()
    import_id = new_import_id()

    client = await get_temporal_client(settings)
    logger.info(f"Connected to Temporal: {client.namespace}")

    input_data = ImportAttendanceInput(
        import_id=import_id,
        start_date=start_date,
        end_date=end_date,
        employee_ids=employee_ids,
    )

    logger.info(f"Starting AttendanceImportWorkflow on task queue '{settings.task_queue}'...")
    handle = await client.start_workflow(
        AttendanceImportWorkflow.run,
        input_data,
        task_queue=settings.task_queue,
        id=import_id,
    )

    logger.info(f"Workflow started: {handle.id}")
    logger.info(f"Watch it with: python scripts/watch_import.py {import_id}")

    result = await handle.result()
    logger.info("Workflow completed")
    return result


def main():
    """Entry point."""
    parser = argparse.ArgumentParser(description="Start an attendance import workflow")
    parser.add_argument("--start", required=True, help="First day (YYYY-MM-DD)")
    parser.add_argument("--end", required=True, help="Last day (YYYY-MM-DD)")
    parser.add_argument("--employee", action="append", required=True, help="Employee ID (repeatable)")
    args = parser.parse_args()

    configure_logging(level=logging.INFO)

    try:
        result = asyncio.run(start_import_workflow(args.start, args.end, args.employee))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("\n=== WORKFLOW RESULT ===")
    for key, value in result.items():
        print(f"  {key}: {value}")
    print("=======================\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
