"""Status classification and normal/extra hours split."""

from typing import Tuple

from core.models.attendance import AttendanceStatus


# A single-day total above this is treated as a clocking mistake
MAX_DAILY_HOURS = 13


def classify(total_hours: float, min_hours: float) -> AttendanceStatus:
    """Derive a record status from the day's total and the contracted minimum.

    The implausible-total check wins over the under-hours check.
    """
    if total_hours > MAX_DAILY_HOURS:
        return AttendanceStatus.NEEDS_CORRECTION
    if total_hours < min_hours:
        return AttendanceStatus.TO_VERIFY
    return AttendanceStatus.VALID


def split_hours(total_hours: float, min_hours: float) -> Tuple[float, float]:
    """Split a day's total into (normal_hours, extra_hours).

    normal_hours = min(total, min_hours), extra_hours = max(0, total - min_hours).
    """
    normal = min(total_hours, min_hours)
    extra = max(0.0, total_hours - min_hours)
    return normal, extra
