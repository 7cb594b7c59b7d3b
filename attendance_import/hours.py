"""Hours parsing.

Normalizes the provider's payroll-hours field into decimal hours.

Accepted forms:
    8, 7.5, Decimal("7.5")      plain numbers
    "7.5", "7,5"                 fractional strings
    "09:30", "08:15:30"          HH:MM and HH:MM:SS
    "PT9H30M", "P1DT2H"          ISO 8601 durations (Jibble's wire format)
"""

import math
import re
from decimal import Decimal
from typing import Union

from core.errors import ParseError


_CLOCK_RE = re.compile(r"^(\d+):([0-5]\d)(?::([0-5]\d(?:\.\d+)?))?$")
_FRACTION_RE = re.compile(r"^\d+(?:[.,]\d+)?$")
_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+(?:\.\d+)?)D)?"
    r"(?:T(?:(?P<hours>\d+(?:\.\d+)?)H)?(?:(?P<minutes>\d+(?:\.\d+)?)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)

RawHours = Union[str, int, float, Decimal]


def _from_number(value: Union[int, float, Decimal]) -> float:
    hours = float(value)
    if not math.isfinite(hours):
        raise ParseError(f"Hours must be finite, got {value!r}")
    if hours < 0:
        raise ParseError(f"Hours must be non-negative, got {value!r}")
    return hours


def _from_duration(match: "re.Match[str]", raw: str) -> float:
    parts = match.groupdict()
    if not any(parts.values()):
        raise ParseError(f"Empty ISO 8601 duration: {raw!r}")
    if raw.endswith("T"):
        raise ParseError(f"Malformed ISO 8601 duration: {raw!r}")

    days = float(parts["days"] or 0)
    hours = float(parts["hours"] or 0)
    minutes = float(parts["minutes"] or 0)
    seconds = float(parts["seconds"] or 0)
    return days * 24 + hours + minutes / 60 + seconds / 3600


def parse_hours(raw: RawHours) -> float:
    """Parse a raw hours value into non-negative decimal hours.

    Args:
        raw: Provider hours value (see module docstring for accepted forms)

    Returns:
        Hours as a float >= 0

    Raises:
        ParseError: If the value is missing, non-numeric, negative or in an
            unknown format
    """
    if raw is None:
        raise ParseError("Hours value is missing")
    if isinstance(raw, bool):
        raise ParseError(f"Hours must be numeric, got {raw!r}")
    if isinstance(raw, (int, float, Decimal)):
        return _from_number(raw)
    if not isinstance(raw, str):
        raise ParseError(f"Unsupported hours type: {type(raw).__name__}")

    s = raw.strip()
    if s == "":
        raise ParseError("Hours value is empty")
    if s.startswith("-"):
        raise ParseError(f"Hours must be non-negative, got {raw!r}")

    match = _CLOCK_RE.match(s)
    if match:
        hours, minutes, seconds = match.groups()
        return int(hours) + int(minutes) / 60 + float(seconds or 0) / 3600

    if _FRACTION_RE.match(s):
        return float(s.replace(",", "."))

    match = _DURATION_RE.match(s.upper())
    if match:
        return _from_duration(match, s.upper())

    raise ParseError(f"Unrecognized hours format: {raw!r}")
