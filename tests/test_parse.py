"""Tests for legacy export parsing and normalization."""
import json

import pytest

from reading_log.models import Book
from reading_log.parse import (
    LegacyImportError,
    coerce_int,
    coerce_pages,
    coerce_str,
    coerce_title,
    cover_url_for,
    isbn_for,
    load_legacy_file,
    parse_legacy_export,
    parse_legacy_row,
)


def test_coerce_pages():
    """Test page counts from floats, ints and strings."""
    assert coerce_pages(300.0) == 300
    assert coerce_pages(250.9) == 250
    assert coerce_pages(120) == 120
    assert coerce_pages("412") == 412
    assert coerce_pages("failnotanumber") == 0
    assert coerce_pages(None) == 0
    assert coerce_pages(True) == 0
    assert coerce_pages(float("nan")) == 0


def test_coerce_int_out_of_range():
    """Test values too large for an integer column become 0."""
    assert coerce_int(1e12) == 0
    assert coerce_int("99999999999") == 0
    assert coerce_int(-(2**31)) == 0
    assert coerce_int(2**31 - 1) == 2**31 - 1


def test_coerce_int_matches_pages():
    """Test year fields follow the same rules as page counts."""
    for value in [1999.0, 1999, "1999", "", None, "19.5"]:
        assert coerce_int(value) == coerce_pages(value)


def test_coerce_title():
    """Test numeric titles are rendered as whole numbers."""
    assert coerce_title("Dune") == "Dune"
    assert coerce_title(1984) == "1984"
    assert coerce_title(1984.0) == "1984"
    assert coerce_title(11.7) == "12"
    assert coerce_title(None) == ""
    assert coerce_title(["list"]) == ""


def test_coerce_str():
    """Test loose values become text."""
    assert coerce_str(None) == ""
    assert coerce_str("Penguin") == "Penguin"
    assert coerce_str(9780143127741.0) == "9780143127741"
    assert coerce_str(42) == "42"
    assert coerce_str(3.25) == "3.25"
    assert coerce_str(1e-7) == "0.0000001"
    assert coerce_str(["x"]) == ""
    assert coerce_str({"a": 1}) == ""


def test_parse_legacy_row_complete():
    """Test parsing a row with every field present."""
    row = {
        "Title": "The Left Hand of Darkness",
        "Author": "Ursula K. Le Guin",
        "Additional Authors": None,
        "ISBN": "0441478123",
        "ISBN13": 9780441478125.0,
        "Publisher": "Ace",
        "Number of Pages": 304.0,
        "Year Published": 1987,
        "Original Publication Year": "1969",
        "Date Read": "2025/03/10",
        "Date Added": "2024/12/01",
        "Bookshelves": "",
        "Exclusive Shelf": "read",
        "My Review": "",
    }

    book = parse_legacy_row(row)

    assert book is not None
    assert book.title == "The Left Hand of Darkness"
    assert book.isbn13 == "9780441478125"
    assert book.pages == 304
    assert book.year_published == 1987
    assert book.original_publication_year == 1969
    assert book.shelf == "read"
    assert book.cover_url == "https://covers.openlibrary.org/b/isbn/9780441478125-M.jpg"


def test_parse_legacy_row_keeps_cover_url():
    """Test an exported cover URL is not replaced."""
    row = {"Title": "A", "Author": "B", "ISBN13": "9781234567890", "CoverURL": "https://example.com/a.jpg"}
    assert parse_legacy_row(row).cover_url == "https://example.com/a.jpg"


def test_parse_legacy_row_shelf_alias():
    """Test the older "Shelf" column is accepted."""
    book = parse_legacy_row({"Title": "A", "Author": "B", "Shelf": "to-read"})
    assert book.shelf == "to-read"


def test_parse_legacy_row_zero_isbn_has_no_cover():
    """Test ISBNs exported as 0 do not produce a cover."""
    book = parse_legacy_row({"Title": "A", "Author": "B", "ISBN": 0, "ISBN13": ""})
    assert book.cover_url == ""


def test_parse_legacy_row_missing_author():
    """Test rows without title or author are dropped."""
    assert parse_legacy_row({"Title": "No Author"}) is None
    assert parse_legacy_row({"Author": "No Title"}) is None


def test_parse_legacy_row_malformed():
    """Test rows whose title is not text are dropped."""
    assert parse_legacy_row({"Title": {"nested": True}, "Author": "B"}) is None
    assert parse_legacy_row("not an object") is None


def test_parse_legacy_row_nested_optional_fields():
    """Test lists and objects in optional columns fall back to defaults."""
    book = parse_legacy_row({
        "Title": "T",
        "Author": "A",
        "ISBN": ["x"],
        "Publisher": {"name": "Ace"},
        "Number of Pages": [300],
        "Date Read": "2025/01/01",
    })

    assert book is not None
    assert book.isbn == ""
    assert book.publisher == ""
    assert book.pages == 0
    assert book.date_read == "2025/01/01"


def test_parse_legacy_export():
    """Test parsing a list skips unusable rows."""
    rows = [
        {"Title": "Book 1", "Author": "A"},
        {"Title": "", "Author": "A"},
        "not a row",
        {"Title": 1984, "Author": "George Orwell"},
    ]

    books = parse_legacy_export(rows)

    assert [b.title for b in books] == ["Book 1", "1984"]


def test_load_legacy_file(tmp_path):
    """Test loading an export from disk."""
    path = tmp_path / "books.json"
    path.write_text(json.dumps([{"Title": "Book 1", "Author": "A", "Number of Pages": "120"}]))

    books = load_legacy_file(str(path))

    assert len(books) == 1
    assert books[0].pages == 120


def test_load_legacy_file_missing(tmp_path):
    """Test a missing file raises LegacyImportError."""
    with pytest.raises(LegacyImportError):
        load_legacy_file(str(tmp_path / "nope.json"))


def test_load_legacy_file_invalid_json(tmp_path):
    """Test malformed JSON raises LegacyImportError."""
    path = tmp_path / "books.json"
    path.write_text("[{not json")
    with pytest.raises(LegacyImportError):
        load_legacy_file(str(path))


def test_load_legacy_file_not_a_list(tmp_path):
    """Test a top-level object is rejected."""
    path = tmp_path / "books.json"
    path.write_text(json.dumps({"Title": "A"}))
    with pytest.raises(LegacyImportError):
        load_legacy_file(str(path))


def test_isbn_and_cover_helpers():
    """Test ISBN-13 preference and stored cover priority."""
    book = Book(title="A", author="B", isbn="0441478123", isbn13="9780441478125")
    assert isbn_for(book) == "9780441478125"
    assert cover_url_for(book).endswith("/9780441478125-M.jpg")

    book.cover_url = "https://example.com/custom.jpg"
    assert cover_url_for(book) == "https://example.com/custom.jpg"

    assert isbn_for(Book(title="A", author="B", isbn="0441478123")) == "0441478123"
    assert cover_url_for(Book(title="A", author="B")) == ""
