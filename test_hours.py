"""Hours parser tests."""

import math
from decimal import Decimal

import pytest

from attendance_import.hours import parse_hours
from core.errors import ParseError


class TestParseHours:
    """Accepted hour representations."""

    @pytest.mark.parametrize("raw, expected", [
        (8, 8.0),
        (7.5, 7.5),
        (0, 0.0),
        (Decimal("7.25"), 7.25),
    ])
    def test_numbers(self, raw, expected):
        assert parse_hours(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("7.5", 7.5),
        ("7,5", 7.5),
        ("8", 8.0),
        (" 9.25 ", 9.25),
    ])
    def test_fractional_strings(self, raw, expected):
        assert parse_hours(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("09:30", 9.5),
        ("8:15", 8.25),
        ("07:30:00", 7.5),
        ("00:45:36", 0.76),
    ])
    def test_clock_strings(self, raw, expected):
        assert math.isclose(parse_hours(raw), expected)

    @pytest.mark.parametrize("raw, expected", [
        ("PT9H30M", 9.5),
        ("PT8H", 8.0),
        ("PT45M", 0.75),
        ("PT7H30M36S", 7.51),
        ("P1DT2H", 26.0),
        ("pt6h", 6.0),
    ])
    def test_iso_durations(self, raw, expected):
        assert math.isclose(parse_hours(raw), expected)


class TestParseHoursRejections:
    """Malformed values raise ParseError."""

    @pytest.mark.parametrize("raw", [
        None,
        "",
        "   ",
        "abc",
        "-1",
        -0.5,
        "8h",
        "12:75",
        "P",
        "PT",
        "1.2.3",
        float("nan"),
        float("inf"),
        True,
    ])
    def test_rejected(self, raw):
        with pytest.raises(ParseError):
            parse_hours(raw)

    def test_unsupported_type(self):
        with pytest.raises(ParseError, match="Unsupported hours type"):
            parse_hours(["8"])

    def test_error_code(self):
        with pytest.raises(ParseError) as exc_info:
            parse_hours("soon")
        assert exc_info.value.code == "PARSE_ERROR"
