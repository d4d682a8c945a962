"""Tests for date-read parsing."""
import pytest

from reading_log.dates import (
    DateParseError,
    EmptyDateError,
    InvalidDayError,
    InvalidMonthError,
    InvalidYearError,
    parse_date,
    try_parse_date,
)
from reading_log.models import ParsedDate


def test_parse_full_date():
    """Test parsing year/month/day."""
    assert parse_date("2025/09/19") == ParsedDate(2025, 9, 19)


def test_parse_year_only():
    """Test that month and day default to 0."""
    date = parse_date("2025")
    assert date.year == 2025
    assert date.month == 0
    assert date.day == 0


def test_parse_year_month():
    """Test parsing year/month."""
    assert parse_date("2025/09") == ParsedDate(2025, 9, 0)


def test_parse_trims_whitespace():
    """Test surrounding whitespace is ignored."""
    assert parse_date("  2024/03/01 \n") == ParsedDate(2024, 3, 1)


def test_parse_empty_trailing_segments():
    """Test empty month/day segments count as absent."""
    assert parse_date("2025//") == ParsedDate(2025, 0, 0)


def test_parse_does_not_check_calendar():
    """Test day is range checked only."""
    assert parse_date("2025/02/30") == ParsedDate(2025, 2, 30)


@pytest.mark.parametrize("value", ["", "   ", "\t"])
def test_parse_empty(value):
    """Test blank input is rejected."""
    with pytest.raises(EmptyDateError):
        parse_date(value)


@pytest.mark.parametrize("value", ["abc", "1899", "1899/01/01", "20x5/01", "2 025", "2_025"])
def test_parse_invalid_year(value):
    """Test non-numeric and pre-1900 years are rejected."""
    with pytest.raises(InvalidYearError):
        parse_date(value)


@pytest.mark.parametrize("value", ["2025/13", "2025/0", "2025/ab", "2025/-1/01"])
def test_parse_invalid_month(value):
    """Test months outside 1-12 are rejected."""
    with pytest.raises(InvalidMonthError):
        parse_date(value)


@pytest.mark.parametrize("value", ["2025/01/32", "2025/01/0", "2025/01/x"])
def test_parse_invalid_day(value):
    """Test days outside 1-31 are rejected."""
    with pytest.raises(InvalidDayError):
        parse_date(value)


def test_errors_share_base_class():
    """Test every parse error can be caught as DateParseError."""
    for value in ["", "1800", "2025/13", "2025/01/40"]:
        with pytest.raises(DateParseError):
            parse_date(value)


def test_try_parse_date():
    """Test the lenient variant returns None instead of raising."""
    assert try_parse_date("2025/05") == ParsedDate(2025, 5, 0)
    assert try_parse_date("") is None
    assert try_parse_date(None) is None
    assert try_parse_date("not a date") is None
