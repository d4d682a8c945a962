"""Parse and normalize the legacy reading log export.

The export is a spreadsheet dump serialized as JSON, so the same column can
hold a string in one row and a number in the next. Rows are validated
against ``LegacyBookRow`` and normalized into ``Book`` right away; nothing
past this module sees the loose types.
"""
import json
import logging
import math
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
)

from reading_log.dates import parse_integer
from reading_log.models import Book

logger = logging.getLogger(__name__)

COVER_URL_TEMPLATE = "https://covers.openlibrary.org/b/isbn/{isbn}-M.jpg"

# Lists and objects are accepted so one odd cell does not drop the row
LooseValue = Union[StrictStr, StrictInt, StrictFloat, StrictBool, None, List[Any], Dict[str, Any]]

# Integer columns are 32-bit in PostgreSQL
MAX_INT = 2**31 - 1


class LegacyImportError(Exception):
    """Raised when a legacy export file cannot be read."""


class LegacyBookRow(BaseModel):
    """One row of the legacy export, before normalization."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: LooseValue = Field(None, alias="Title")
    author: LooseValue = Field(None, alias="Author")
    additional_authors: LooseValue = Field(None, alias="Additional Authors")
    isbn: LooseValue = Field(None, alias="ISBN")
    isbn13: LooseValue = Field(None, alias="ISBN13")
    publisher: LooseValue = Field(None, alias="Publisher")
    pages: LooseValue = Field(None, alias="Number of Pages")
    year_published: LooseValue = Field(None, alias="Year Published")
    original_publication_year: LooseValue = Field(None, alias="Original Publication Year")
    date_read: LooseValue = Field(None, alias="Date Read")
    date_added: LooseValue = Field(None, alias="Date Added")
    shelf: LooseValue = Field(
        None, validation_alias=AliasChoices("Exclusive Shelf", "Shelf")
    )
    review: LooseValue = Field(None, alias="My Review")
    cover_url: LooseValue = Field(None, alias="CoverURL")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def coerce_title(value: Any) -> str:
    """Titles may be numeric ("1984"); floats are rounded to a whole number."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        return f"{value:.0f}"
    return ""


def coerce_int(value: Any) -> int:
    """
    Convert a loosely typed value to an integer.

    Args:
        value: str, int, float or anything else

    Returns:
        Truncated integer, or 0 when the value is not numeric or does
        not fit a 32-bit column
    """
    parsed = None
    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        parsed = int(value)
    elif isinstance(value, str):
        parsed = parse_integer(value)

    if parsed is None or abs(parsed) > MAX_INT:
        return 0
    return parsed


def coerce_pages(value: Any) -> int:
    return coerce_int(value)


def coerce_str(value: Any) -> str:
    """
    Convert a loosely typed value to text.

    Whole numbers drop their fractional part (ISBNs exported as floats);
    other floats use the shortest plain decimal form.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return str(value)
        if value == int(value):
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    return ""


def build_cover_url(isbn13: str, isbn: str) -> str:
    """Open Library cover URL for the first usable ISBN, preferring ISBN-13."""
    for candidate in (isbn13, isbn):
        if candidate and candidate != "0":
            return COVER_URL_TEMPLATE.format(isbn=candidate)
    return ""


def isbn_for(book: Book) -> str:
    """Return the ISBN-13 when set, else the ISBN-10."""
    if book.isbn13 and book.isbn13 != "0":
        return book.isbn13
    if book.isbn and book.isbn != "0":
        return book.isbn
    return ""


def cover_url_for(book: Book) -> str:
    """Stored cover URL wins; otherwise derive one from the ISBN."""
    if book.cover_url:
        return book.cover_url
    return build_cover_url(book.isbn13, book.isbn)


def parse_legacy_row(row: Dict[str, Any]) -> Optional[Book]:
    """
    Parse a single row of the legacy export.

    Args:
        row: Raw row as decoded from JSON

    Returns:
        Book, or None when the row is malformed or has no title/author
    """
    try:
        raw = LegacyBookRow.model_validate(row)
    except ValidationError as e:
        logger.warning(f"Skipping malformed legacy row: {e.error_count()} invalid field(s)")
        return None

    isbn = coerce_str(raw.isbn)
    isbn13 = coerce_str(raw.isbn13)
    cover_url = coerce_str(raw.cover_url) or build_cover_url(isbn13, isbn)

    book = Book(
        title=coerce_title(raw.title),
        author=coerce_str(raw.author),
        additional_authors=coerce_str(raw.additional_authors),
        isbn=isbn,
        isbn13=isbn13,
        publisher=coerce_str(raw.publisher),
        pages=coerce_pages(raw.pages),
        year_published=coerce_int(raw.year_published),
        original_publication_year=coerce_int(raw.original_publication_year),
        date_read=coerce_str(raw.date_read),
        date_added=coerce_str(raw.date_added),
        shelf=coerce_str(raw.shelf),
        review=coerce_str(raw.review),
        cover_url=cover_url,
    )

    if not book.is_valid:
        return None
    return book


def parse_legacy_export(rows: List[Dict[str, Any]]) -> List[Book]:
    """
    Parse every row of a legacy export, dropping the invalid ones.

    Args:
        rows: Decoded JSON array of export rows

    Returns:
        List of Book objects (empty if nothing was usable)
    """
    books = []
    skipped = 0

    for row in rows:
        book = parse_legacy_row(row) if isinstance(row, dict) else None
        if book:
            books.append(book)
        else:
            skipped += 1

    if skipped:
        logger.info(f"Skipped {skipped} legacy rows without a usable title/author")
    return books


def load_legacy_file(path: str) -> List[Book]:
    """
    Read and parse a legacy export file.

    Raises:
        LegacyImportError: the file is missing, is not JSON, or is not a list
    """
    try:
        with open(path, encoding="utf-8") as f:
            rows = json.load(f)
    except OSError as e:
        raise LegacyImportError(f"failed to read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise LegacyImportError(f"failed to parse {path}: {e}") from e

    if not isinstance(rows, list):
        raise LegacyImportError(f"{path} does not contain a JSON array")

    return parse_legacy_export(rows)
