"""
Metrics Collection for the Attendance Import Pipeline

Collects in-memory counters for:
- Import runs (started, completed, failed, cancelled)
- Employees (imported, failed)
- Days (imported, protected, skipped by reason)
- Run durations (average, p95)
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Optional


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class RunMetrics:
    """Counters for import runs."""
    started: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
    in_progress: int = 0


@dataclass
class RecordMetrics:
    """Counters for employees and days."""
    employees_imported: int = 0
    employees_failed: int = 0
    days_imported: int = 0
    days_protected: int = 0
    days_skipped: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class TimingMetrics:
    """Run duration samples (keeps the last ``max_samples``)."""
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    def add_sample(self, duration_ms: float):
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

    def get_average(self) -> float:
        return statistics.mean(self.samples) if self.samples else 0.0

    def get_p95(self) -> float:
        if not self.samples:
            return 0.0
        ordered = sorted(self.samples)
        idx = int(len(ordered) * 0.95)
        return ordered[min(idx, len(ordered) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_run_started("imp-123")
        metrics.record_day_skipped("PARSE_ERROR")
    """

    _instance: Optional["MetricsCollector"] = None
    _instance_lock = Lock()

    def __init__(self):
        self.runs = RunMetrics()
        self.records = RecordMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    # =========================================================================
    # Runs
    # =========================================================================

    def record_run_started(self, import_id: str):
        with self._lock:
            self.runs.started += 1
            self.runs.in_progress += 1

    def record_run_completed(self, import_id: str, duration_ms: Optional[float] = None):
        with self._lock:
            self.runs.completed += 1
            self.runs.in_progress = max(0, self.runs.in_progress - 1)
            if duration_ms is not None:
                self.timings.add_sample(duration_ms)

    def record_run_failed(self, import_id: str, cancelled: bool = False):
        with self._lock:
            if cancelled:
                self.runs.cancelled += 1
            else:
                self.runs.failed += 1
            self.runs.in_progress = max(0, self.runs.in_progress - 1)

    # =========================================================================
    # Employees and days
    # =========================================================================

    def record_employee_imported(self, days_imported: int, days_protected: int = 0):
        with self._lock:
            self.records.employees_imported += 1
            self.records.days_imported += days_imported
            self.records.days_protected += days_protected

    def record_employee_failed(self):
        with self._lock:
            self.records.employees_failed += 1

    def record_day_skipped(self, reason: str):
        with self._lock:
            self.records.days_skipped[reason] += 1

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "runs": {
                    "started": self.runs.started,
                    "completed": self.runs.completed,
                    "failed": self.runs.failed,
                    "cancelled": self.runs.cancelled,
                    "in_progress": self.runs.in_progress,
                },
                "records": {
                    "employees_imported": self.records.employees_imported,
                    "employees_failed": self.records.employees_failed,
                    "days_imported": self.records.days_imported,
                    "days_protected": self.records.days_protected,
                    "days_skipped": dict(self.records.days_skipped),
                },
                "timings": {
                    "average_ms": self.timings.get_average(),
                    "p95_ms": self.timings.get_p95(),
                    "sample_count": len(self.timings.samples),
                },
            }


def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()
