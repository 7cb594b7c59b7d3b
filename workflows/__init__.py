"""Workflow definitions module."""

from workflows.attendance_import_workflow import AttendanceImportWorkflow

__all__ = ["AttendanceImportWorkflow"]
