"""Data models for the reading log."""
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any


@dataclass
class Book:
    """Normalized reading log entry."""
    title: str
    author: str
    additional_authors: str = ""
    isbn: str = ""
    isbn13: str = ""
    publisher: str = ""
    pages: int = 0
    year_published: int = 0
    original_publication_year: int = 0
    date_read: str = ""
    date_added: str = ""
    shelf: str = "read"
    review: str = ""
    cover_url: str = ""
    id: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        """A record needs both a title and an author to be stored."""
        return bool(self.title) and bool(self.author)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys used by the API."""
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "additionalAuthors": self.additional_authors,
            "isbn": self.isbn,
            "isbn13": self.isbn13,
            "publisher": self.publisher,
            "pages": self.pages,
            "yearPublished": self.year_published,
            "originalPublicationYear": self.original_publication_year,
            "dateRead": self.date_read,
            "dateAdded": self.date_added,
            "shelf": self.shelf,
            "review": self.review,
            "coverUrl": self.cover_url,
        }


@dataclass(frozen=True)
class ParsedDate:
    """Year/month/day decomposition of a date-read string.

    Month and day are 0 when the source string did not specify them.
    """
    year: int
    month: int = 0
    day: int = 0


@dataclass
class Statistics:
    """Aggregate reading figures for one year."""
    year: int
    total_books: int
    total_pages: int
    average_per_month: float


@dataclass
class MonthlyCount:
    """One bucket of the monthly histogram."""
    month: int
    month_name: str
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"month": self.month, "monthName": self.month_name, "count": self.count}


@dataclass
class YearCount:
    year: int
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Goal:
    """Yearly reading target."""
    year: int
    book_target: int
