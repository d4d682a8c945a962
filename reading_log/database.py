"""Database layer for the reading log, goals and settings."""
import psycopg2
from psycopg2 import pool
from datetime import datetime, timezone
from typing import Optional, List
import logging

from reading_log.models import Book, Goal

logger = logging.getLogger(__name__)

BOOK_COLUMNS = """
    id, title, author, additional_authors, isbn, isbn13, publisher,
    pages, year_published, original_publication_year, date_read,
    date_added, shelf, review, cover_url
"""


def _row_to_book(row) -> Book:
    (book_id, title, author, additional_authors, isbn, isbn13, publisher,
     pages, year_published, original_publication_year, date_read,
     date_added, shelf, review, cover_url) = row
    return Book(
        id=book_id,
        title=title,
        author=author,
        additional_authors=additional_authors,
        isbn=isbn,
        isbn13=isbn13,
        publisher=publisher,
        pages=pages,
        year_published=year_published,
        original_publication_year=original_publication_year,
        date_read=date_read,
        date_added=date_added,
        shelf=shelf,
        review=review,
        cover_url=cover_url,
    )


def _book_params(book: Book) -> tuple:
    return (
        book.title, book.author, book.additional_authors, book.isbn,
        book.isbn13, book.publisher, book.pages, book.year_published,
        book.original_publication_year, book.date_read, book.date_added,
        book.shelf, book.review, book.cover_url,
    )


class Database:
    """PostgreSQL database with connection pooling."""

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 10):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        # Request handlers run in a threadpool, so the pool must be thread safe
        self.connection_pool = psycopg2.pool.ThreadedConnectionPool(
            min_conn,
            max_conn,
            connection_string
        )
        logger.info("Database connection pool created successfully")

    def init_schema(self):
        """Create database tables if they don't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS books (
                        id SERIAL PRIMARY KEY,
                        title TEXT NOT NULL,
                        author TEXT NOT NULL,
                        additional_authors TEXT DEFAULT '',
                        isbn TEXT DEFAULT '',
                        isbn13 TEXT DEFAULT '',
                        publisher TEXT DEFAULT '',
                        pages INTEGER DEFAULT 0,
                        year_published INTEGER DEFAULT 0,
                        original_publication_year INTEGER DEFAULT 0,
                        date_read TEXT DEFAULT '',
                        date_added TEXT DEFAULT '',
                        shelf TEXT DEFAULT 'read',
                        review TEXT DEFAULT '',
                        cover_url TEXT DEFAULT '',
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                cur.execute("""
                    CREATE TABLE IF NOT EXISTS settings (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                """)

                cur.execute("""
                    CREATE TABLE IF NOT EXISTS goals (
                        year INTEGER PRIMARY KEY,
                        book_target INTEGER NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                cur.execute("CREATE INDEX IF NOT EXISTS idx_books_date_read ON books (date_read)")
                cur.execute("CREATE INDEX IF NOT EXISTS idx_books_shelf ON books (shelf)")

                conn.commit()
                logger.info("Database schema initialized successfully")
        except Exception:
            conn.rollback()
            raise
        finally:
            self.connection_pool.putconn(conn)

    def create_book(self, book: Book) -> int:
        """
        Insert a book.

        Args:
            book: Book to store (its id is ignored)

        Returns:
            Id assigned by the database
        """
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO books (
                        title, author, additional_authors, isbn, isbn13, publisher,
                        pages, year_published, original_publication_year, date_read,
                        date_added, shelf, review, cover_url
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id
                """, _book_params(book))
                book_id = cur.fetchone()[0]
                conn.commit()
                logger.info(f"Created book {book_id}: {book.title}")
                return book_id
        except Exception:
            conn.rollback()
            raise
        finally:
            self.connection_pool.putconn(conn)

    def get_book(self, book_id: int) -> Optional[Book]:
        """Get a book by ID."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {BOOK_COLUMNS} FROM books WHERE id = %s", (book_id,))
                row = cur.fetchone()
                return _row_to_book(row) if row else None
        finally:
            self.connection_pool.putconn(conn)

    def get_all_books(self) -> List[Book]:
        """Return every book, most recently read first."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {BOOK_COLUMNS} FROM books ORDER BY date_read DESC")
                return [_row_to_book(row) for row in cur.fetchall()]
        finally:
            self.connection_pool.putconn(conn)

    def update_book(self, book: Book) -> bool:
        """
        Overwrite every field of an existing book.

        Args:
            book: Book carrying the id to update

        Returns:
            True if a row was updated, False if the id does not exist
        """
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    UPDATE books SET
                        title = %s, author = %s, additional_authors = %s, isbn = %s,
                        isbn13 = %s, publisher = %s, pages = %s, year_published = %s,
                        original_publication_year = %s, date_read = %s, date_added = %s,
                        shelf = %s, review = %s, cover_url = %s,
                        updated_at = CURRENT_TIMESTAMP
                    WHERE id = %s
                """, _book_params(book) + (book.id,))
                updated = cur.rowcount > 0
                conn.commit()
                return updated
        except Exception:
            conn.rollback()
            raise
        finally:
            self.connection_pool.putconn(conn)

    def delete_book(self, book_id: int) -> bool:
        """Delete a book; returns False if it did not exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM books WHERE id = %s", (book_id,))
                deleted = cur.rowcount > 0
                conn.commit()
                return deleted
        except Exception:
            conn.rollback()
            raise
        finally:
            self.connection_pool.putconn(conn)

    def book_count(self) -> int:
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM books")
                return cur.fetchone()[0]
        finally:
            self.connection_pool.putconn(conn)

    def get_goal(self, year: int) -> Optional[Goal]:
        """Get the reading goal for a year, or None if unset."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT year, book_target FROM goals WHERE year = %s", (year,))
                row = cur.fetchone()
                return Goal(year=row[0], book_target=row[1]) if row else None
        finally:
            self.connection_pool.putconn(conn)

    def set_goal(self, year: int, book_target: int):
        """Create or replace the reading goal for a year."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO goals (year, book_target) VALUES (%s, %s)
                    ON CONFLICT (year) DO UPDATE SET book_target = EXCLUDED.book_target
                """, (year, book_target))
                conn.commit()
                logger.info(f"Goal for {year} set to {book_target}")
        except Exception:
            conn.rollback()
            raise
        finally:
            self.connection_pool.putconn(conn)

    def get_setting(self, key: str) -> str:
        """Get a setting value; missing keys read as an empty string."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT value FROM settings WHERE key = %s", (key,))
                row = cur.fetchone()
                return row[0] if row else ""
        finally:
            self.connection_pool.putconn(conn)

    def set_setting(self, key: str, value: str):
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO settings (key, value) VALUES (%s, %s)
                    ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value
                """, (key, value))
                conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self.connection_pool.putconn(conn)

    def import_legacy(self, books: List[Book]) -> int:
        """
        One-time import of legacy export records.

        Does nothing when the store already holds books. Inserts run in a
        single transaction, so a failure leaves the store empty.

        Args:
            books: Normalized books from the legacy export

        Returns:
            Number of books imported
        """
        if self.book_count() > 0:
            logger.info("Books already present, skipping legacy import")
            return 0

        conn = self.connection_pool.getconn()
        imported = 0
        try:
            with conn.cursor() as cur:
                for book in books:
                    if not book.is_valid:
                        continue
                    cur.execute("""
                        INSERT INTO books (
                            title, author, additional_authors, isbn, isbn13, publisher,
                            pages, year_published, original_publication_year, date_read,
                            date_added, shelf, review, cover_url
                        ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """, _book_params(book))
                    imported += 1

                cur.execute("""
                    INSERT INTO settings (key, value) VALUES (%s, %s)
                    ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value
                """, ("imported_at", datetime.now(timezone.utc).isoformat()))
                conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Legacy import failed after {imported} books: {e}")
            raise
        finally:
            self.connection_pool.putconn(conn)

        logger.info(f"Imported {imported} books from legacy export")
        return imported

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
