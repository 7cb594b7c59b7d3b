"""Worker for the attendance import service.

Listens on the attendance task queue and executes the import workflow and
its activity.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from temporalio.worker import Worker

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.config import load_settings
from core.observability.logging import configure_logging, get_logger
from temporal_client import get_temporal_client
from workflows.attendance_import_workflow import AttendanceImportWorkflow
from activities.import_attendance import import_attendance_period


logger = get_logger(__name__)

WORKFLOWS = [AttendanceImportWorkflow]
ACTIVITIES = [import_attendance_period]


async def run_worker(task_queue: str = None):
    """Start a worker listening on the task queue.

    Args:
        task_queue: Queue to poll (defaults to TEMPORAL_TASK_QUEUE)

    Raises:
        Exception: If connection to Temporal fails
    """
    settings = load_settings()
    task_queue = task_queue or settings.task_queue

    client = await get_temporal_client(settings)
    logger.info(f"Connected to Temporal: {client.namespace}")

    worker = Worker(
        client,
        task_queue=task_queue,
        workflows=WORKFLOWS,
        activities=ACTIVITIES,
    )
    logger.info(f"Worker created for queue '{task_queue}':")
    logger.info(f"  - Workflows: {len(WORKFLOWS)}")
    logger.info(f"  - Activities: {len(ACTIVITIES)}")

    try:
        logger.info("Worker running... (Ctrl+C to stop)")
        await worker.run()
    except Exception as e:
        logger.error(f"Worker error: {e}", exc_info=True)
        raise


def main():
    """Entry point for worker with CLI args."""
    parser = argparse.ArgumentParser(description="Attendance Import Temporal Worker")
    parser.add_argument(
        "--queue", "-q",
        default=None,
        help="Task queue to poll (default: TEMPORAL_TASK_QUEUE or attendance-import)",
    )
    args = parser.parse_args()

    settings = load_settings()
    configure_logging(
        level=getattr(logging, settings.log_level, logging.INFO),
        json_format=settings.log_json,
    )

    try:
        asyncio.run(run_worker(task_queue=args.queue))
    except KeyboardInterrupt:
        logger.info("Worker interrupted by user")


if __name__ == "__main__":
    main()
