"""Reading statistics over an already filtered set of books."""
from collections import Counter
from typing import List

from reading_log.dates import try_parse_date
from reading_log.models import Book, MonthlyCount, Statistics, YearCount

MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


def calculate_statistics(books: List[Book], year: int) -> Statistics:
    """
    Summarize a year of reading.

    The caller applies any year/shelf filtering; every book passed in is
    counted. Books with zero or negative page counts add nothing to the
    page total.

    Args:
        books: Books already filtered to the year of interest
        year: Year the figures are reported for

    Returns:
        Statistics for the given books
    """
    total_books = len(books)
    total_pages = sum(book.pages for book in books if book.pages > 0)

    return Statistics(
        year=year,
        total_books=total_books,
        total_pages=total_pages,
        average_per_month=total_books / 12.0,
    )


def calculate_monthly_breakdown(books: List[Book]) -> List[MonthlyCount]:
    """
    Count books per calendar month.

    Always returns twelve buckets, January first. Books without a
    month-bearing, parseable date-read are not counted.
    """
    breakdown = [
        MonthlyCount(month=i + 1, month_name=name)
        for i, name in enumerate(MONTH_NAMES)
    ]

    for book in books:
        date = try_parse_date(book.date_read)
        if date is None or date.month == 0:
            continue
        breakdown[date.month - 1].count += 1

    return breakdown


def count_by_year(books: List[Book], shelf: str = "read") -> List[YearCount]:
    """
    Count books per year of reading for one shelf, newest year first.

    Args:
        books: Full reading log
        shelf: Shelf label to count

    Returns:
        One YearCount per year that has at least one book
    """
    counts = Counter()
    for book in books:
        if book.shelf != shelf:
            continue
        date = try_parse_date(book.date_read)
        if date is not None:
            counts[date.year] += 1

    return [YearCount(year=year, count=counts[year]) for year in sorted(counts, reverse=True)]
