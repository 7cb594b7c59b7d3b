"""Import progress accumulator.

The caller owns a ProgressTracker and passes it to the orchestrator. Every
update replaces the tracker's snapshot with a new immutable ImportProgress and
pushes it to the registered sinks. Nothing is shared between runs.
"""

import uuid
from typing import Callable, Iterable, List, Optional

from core.models.attendance import ImportProgress, ImportRunStatus
from core.observability.logging import get_logger


logger = get_logger(__name__)

ProgressSink = Callable[[ImportProgress], None]

_TRANSITIONS = {
    ImportRunStatus.PENDING: {ImportRunStatus.PENDING, ImportRunStatus.PROCESSING, ImportRunStatus.ERROR},
    ImportRunStatus.PROCESSING: {ImportRunStatus.PROCESSING, ImportRunStatus.COMPLETED, ImportRunStatus.ERROR},
    ImportRunStatus.COMPLETED: set(),
    ImportRunStatus.ERROR: set(),
}


def new_import_id() -> str:
    return f"imp-{uuid.uuid4().hex[:12]}"


class ProgressTracker:
    """Holds the latest snapshot of one import run and fans it out to sinks.

    Status moves pending -> processing -> completed | error. A tracker that
    reached a terminal status rejects further updates.
    """

    def __init__(self, import_id: Optional[str] = None, sinks: Iterable[ProgressSink] = ()):
        self._snapshot = ImportProgress(import_id=import_id or new_import_id())
        self._sinks: List[ProgressSink] = list(sinks)

    @property
    def snapshot(self) -> ImportProgress:
        return self._snapshot

    @property
    def import_id(self) -> str:
        return self._snapshot.import_id

    def subscribe(self, sink: ProgressSink) -> None:
        if sink not in self._sinks:
            self._sinks.append(sink)

    def update(self, **changes) -> ImportProgress:
        """Apply changes, publish and return the new snapshot.

        Raises:
            ValueError: On a status transition the run lifecycle does not allow
        """
        status = changes.get("status")
        if status is not None:
            status = ImportRunStatus(status)
            if status not in _TRANSITIONS[self._snapshot.status]:
                raise ValueError(
                    f"Illegal progress transition {self._snapshot.status.value} -> {status.value}"
                )
            changes["status"] = status
        elif self._snapshot.is_terminal:
            raise ValueError(f"Import run already {self._snapshot.status.value}")

        self._snapshot = self._snapshot.model_copy(update=changes)
        self._publish(self._snapshot)
        return self._snapshot

    def _publish(self, snapshot: ImportProgress) -> None:
        for sink in self._sinks:
            try:
                sink(snapshot)
            except Exception:
                # Sinks are fire-and-forget; a broken sink must not stop the run
                logger.exception(f"Progress sink {sink!r} failed")
