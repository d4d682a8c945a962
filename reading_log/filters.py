"""Select subsets of the reading log by year, shelf and month."""
from typing import List

from reading_log.dates import try_parse_date
from reading_log.models import Book


def filter_by_year(books: List[Book], year: int) -> List[Book]:
    """
    Keep books whose date-read falls in the given year.

    Books with an empty or unparseable date-read are skipped.

    Args:
        books: Books to filter
        year: Calendar year to match

    Returns:
        Matching books in input order
    """
    filtered = []
    for book in books:
        date = try_parse_date(book.date_read)
        if date is not None and date.year == year:
            filtered.append(book)
    return filtered


def filter_by_shelf(books: List[Book], shelf: str) -> List[Book]:
    """Keep books whose shelf label equals ``shelf`` exactly (case-sensitive)."""
    return [book for book in books if book.shelf == shelf]


def filter_by_month(books: List[Book], month: int) -> List[Book]:
    """
    Keep books read in the given month.

    A month of 0 or less disables the filter and returns the input as is.
    """
    if month <= 0:
        return list(books)

    filtered = []
    for book in books:
        date = try_parse_date(book.date_read)
        if date is not None and date.month == month:
            filtered.append(book)
    return filtered
