"""
Observability tests.

Validates:
1. Metrics collection (runs, employees, days, timings)
2. Structured logging with correlation IDs
3. Settings loading from the environment
"""

import json
import os
import logging

import pytest


def test_observability_imports():
    """Verify all observability modules import correctly."""
    from core.observability import (
        MetricsCollector, get_metrics,
        get_logger, CorrelationContext, with_correlation, configure_logging,
    )
    assert MetricsCollector is not None
    assert get_metrics is not None
    assert CorrelationContext is not None


class TestMetricsCollector:
    """Test the metrics collection system."""

    def test_singleton_instance(self):
        """MetricsCollector returns same instance."""
        from core.observability.metrics import MetricsCollector
        assert MetricsCollector.instance() is MetricsCollector.instance()

    def test_run_tracking(self):
        """Track run started/completed/failed/cancelled counts."""
        from core.observability.metrics import get_metrics
        mc = get_metrics()

        mc.record_run_started("imp-1")
        mc.record_run_started("imp-2")
        mc.record_run_started("imp-3")
        mc.record_run_completed("imp-1", duration_ms=120)
        mc.record_run_failed("imp-2")
        mc.record_run_failed("imp-3", cancelled=True)

        runs = mc.get_summary()["runs"]
        assert runs["started"] == 3
        assert runs["completed"] == 1
        assert runs["failed"] == 1
        assert runs["cancelled"] == 1
        assert runs["in_progress"] == 0

    def test_record_tracking(self):
        """Track employees and days by outcome."""
        from core.observability.metrics import get_metrics
        mc = get_metrics()

        mc.record_employee_imported(days_imported=5, days_protected=1)
        mc.record_employee_failed()
        mc.record_day_skipped("PARSE_ERROR")
        mc.record_day_skipped("PARSE_ERROR")
        mc.record_day_skipped("MISSING_HOURS")

        records = mc.get_summary()["records"]
        assert records["employees_imported"] == 1
        assert records["employees_failed"] == 1
        assert records["days_imported"] == 5
        assert records["days_protected"] == 1
        assert records["days_skipped"] == {"PARSE_ERROR": 2, "MISSING_HOURS": 1}

    def test_timing_percentile_calculation(self):
        """Calculate p95 timing correctly."""
        from core.observability.metrics import get_metrics
        mc = get_metrics()

        for i in range(1, 101):
            mc.record_run_started(f"imp-{i}")
            mc.record_run_completed(f"imp-{i}", duration_ms=i)

        timings = mc.get_summary()["timings"]
        assert 49 <= timings["average_ms"] <= 52
        assert 93 <= timings["p95_ms"] <= 97


class TestCorrelatedLogging:
    """Test structured logging with correlation IDs."""

    def test_correlation_context_creation(self):
        """Create correlation context with all fields."""
        from core.observability.logging import CorrelationContext

        ctx = CorrelationContext(
            import_id="imp-001",
            employee_id="emp-1",
            work_date="2024-03-04",
            workflow_id="wf-abc",
            activity_name="import_attendance_period",
        )

        assert ctx.import_id == "imp-001"
        assert ctx.employee_id == "emp-1"
        assert ctx.to_dict()["work_date"] == "2024-03-04"

    def test_context_var_isolation(self):
        """with_correlation nests and restores."""
        from core.observability.logging import get_correlation_context, with_correlation

        assert get_correlation_context().import_id is None

        with with_correlation(import_id="imp-TEST"):
            with with_correlation(employee_id="emp-1"):
                inner = get_correlation_context()
                assert (inner.import_id, inner.employee_id) == ("imp-TEST", "emp-1")
            assert get_correlation_context().employee_id is None

        assert get_correlation_context().import_id is None

    def test_structured_formatter_json_output(self):
        """StructuredFormatter outputs valid JSON with context and extra fields."""
        from core.observability.logging import StructuredFormatter, with_correlation

        formatter = StructuredFormatter()

        with with_correlation(import_id="imp-001", employee_id="emp-1"):
            record = logging.LogRecord(
                name="test",
                level=logging.INFO,
                pathname="test.py",
                lineno=10,
                msg="Imported %d records",
                args=(3,),
                exc_info=None,
            )
            record.extra_fields = {"records": 3}

            data = json.loads(formatter.format(record))

        assert data["message"] == "Imported 3 records"
        assert data["import_id"] == "imp-001"
        assert data["employee_id"] == "emp-1"
        assert data["records"] == 3

    def test_human_readable_formatter(self):
        """HumanReadableFormatter shows the correlation path."""
        from core.observability.logging import HumanReadableFormatter, with_correlation

        record = logging.LogRecord("attendance_import.importer", logging.INFO, "x.py", 1, "hello", (), None)
        with with_correlation(import_id="imp-9", employee_id="emp-2"):
            line = HumanReadableFormatter().format(record)

        assert "[imp-9/emp:emp-2]" in line
        assert line.endswith("hello")

    def test_correlated_logger_extra_fields(self, caplog):
        """CorrelatedLogger attaches extra_fields to the record."""
        from core.observability.logging import get_logger

        logger = get_logger("attendance_import.test")
        with caplog.at_level(logging.INFO, logger="attendance_import.test"):
            logger.info("done", extra_fields={"records": 2})

        assert caplog.records[-1].extra_fields == {"records": 2}


class TestSettings:
    """Settings loading."""

    def test_defaults(self, monkeypatch, tmp_path):
        from core.config import load_settings
        for name in ("IMPORT_BATCH_SIZE", "IMPORT_CONCURRENCY", "TEMPORAL_TASK_QUEUE", "LOG_JSON"):
            monkeypatch.delenv(name, raising=False)

        settings = load_settings(env_file=tmp_path / "missing.env")

        assert settings.batch_size == 50
        assert settings.task_queue == "attendance-import"
        assert settings.log_json is False

    def test_from_environment(self, monkeypatch, tmp_path):
        from core.config import load_settings
        monkeypatch.setenv("ATTENDANCE_DB_PATH", str(tmp_path / "a.db"))
        monkeypatch.setenv("IMPORT_BATCH_SIZE", "10")
        monkeypatch.setenv("IMPORT_CONCURRENCY", "3")
        monkeypatch.setenv("LOG_JSON", "true")
        monkeypatch.setenv("JIBBLE_TOKEN_CACHE", str(tmp_path / "token.json"))

        settings = load_settings(env_file=tmp_path / "missing.env")

        assert settings.db_path == tmp_path / "a.db"
        assert (settings.batch_size, settings.concurrency) == (10, 3)
        assert settings.log_json is True
        assert settings.jibble_token_cache == tmp_path / "token.json"

    def test_invalid_batch_size(self, monkeypatch, tmp_path):
        from core.config import load_settings
        monkeypatch.setenv("IMPORT_BATCH_SIZE", "zero")
        with pytest.raises(ValueError, match="IMPORT_BATCH_SIZE"):
            load_settings(env_file=tmp_path / "missing.env")

    def test_env_file(self, monkeypatch, tmp_path):
        from core.config import load_settings
        monkeypatch.delenv("TEMPORAL_TASK_QUEUE", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("TEMPORAL_TASK_QUEUE=attendance-test\n")

        try:
            settings = load_settings(env_file=env_file)
        finally:
            os.environ.pop("TEMPORAL_TASK_QUEUE", None)

        assert settings.task_queue == "attendance-test"
