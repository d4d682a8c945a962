"""Parse the loosely formatted date-read strings of the reading log.

Accepted shapes are ``YYYY``, ``YYYY/MM`` and ``YYYY/MM/DD``. Month and day
are range checked only; ``2025/02/30`` is accepted.
"""
import re
from typing import Optional

from reading_log.models import ParsedDate

MIN_YEAR = 1900

_INTEGER = re.compile(r"[+-]?[0-9]+")


class DateParseError(ValueError):
    """Base class for date-read parsing failures."""


class EmptyDateError(DateParseError):
    pass


class InvalidYearError(DateParseError):
    pass


class InvalidMonthError(DateParseError):
    pass


class InvalidDayError(DateParseError):
    pass


def parse_integer(segment: str) -> Optional[int]:
    """Parse an optionally signed run of ASCII digits, or return None."""
    if not _INTEGER.fullmatch(segment):
        return None
    return int(segment)


def parse_date(date_string: str) -> ParsedDate:
    """
    Parse a date-read string into its components.

    Args:
        date_string: ``YYYY``, ``YYYY/MM`` or ``YYYY/MM/DD``, surrounding
            whitespace allowed

    Returns:
        ParsedDate with unspecified month/day left at 0

    Raises:
        EmptyDateError: blank input
        InvalidYearError: year is not an integer or is before 1900
        InvalidMonthError: month is not an integer in 1-12
        InvalidDayError: day is not an integer in 1-31
    """
    date_string = date_string.strip()
    if not date_string:
        raise EmptyDateError("empty date string")

    parts = date_string.split("/")

    year = parse_integer(parts[0])
    if year is None:
        raise InvalidYearError(f"invalid year: {parts[0]!r}")
    if year < MIN_YEAR:
        raise InvalidYearError(f"year must be >= {MIN_YEAR}, got {year}")

    month = 0
    if len(parts) > 1 and parts[1] != "":
        month = parse_integer(parts[1])
        if month is None:
            raise InvalidMonthError(f"invalid month: {parts[1]!r}")
        if not 1 <= month <= 12:
            raise InvalidMonthError(f"month must be 1-12, got {month}")

    day = 0
    if len(parts) > 2 and parts[2] != "":
        day = parse_integer(parts[2])
        if day is None:
            raise InvalidDayError(f"invalid day: {parts[2]!r}")
        if not 1 <= day <= 31:
            raise InvalidDayError(f"day must be 1-31, got {day}")

    return ParsedDate(year=year, month=month, day=day)


def try_parse_date(date_string: Optional[str]) -> Optional[ParsedDate]:
    """Parse a date-read string, returning None when it is empty or invalid."""
    if not date_string:
        return None
    try:
        return parse_date(date_string)
    except DateParseError:
        return None
