"""Shared fixtures."""
import pytest
from fastapi.testclient import TestClient

from reading_log.api import create_app
from reading_log.auth import Authenticator
from reading_log.config import Config
from reading_log.models import Book, Goal

PASSWORD = "correct-horse"


class FakeStore:
    """In-memory stand-in for Database with the same methods."""

    def __init__(self, books=None):
        self.books = {}
        self.goals = {}
        self.settings = {}
        self.next_id = 1
        for book in books or []:
            self.create_book(book)

    def create_book(self, book):
        book.id = self.next_id
        self.books[book.id] = book
        self.next_id += 1
        return book.id

    def get_book(self, book_id):
        return self.books.get(book_id)

    def get_all_books(self):
        return list(self.books.values())

    def update_book(self, book):
        if book.id not in self.books:
            return False
        self.books[book.id] = book
        return True

    def delete_book(self, book_id):
        return self.books.pop(book_id, None) is not None

    def book_count(self):
        return len(self.books)

    def get_goal(self, year):
        target = self.goals.get(year)
        return Goal(year=year, book_target=target) if target is not None else None

    def set_goal(self, year, book_target):
        self.goals[year] = book_target

    def get_setting(self, key):
        return self.settings.get(key, "")

    def set_setting(self, key, value):
        self.settings[key] = value


def make_books():
    return [
        Book(title="Test Book 2025", author="Author One", date_read="2025/01/15",
             pages=200, shelf="read", isbn13="9781234567890"),
        Book(title="Another Book 2025", author="Author Two", date_read="2025/02/20",
             pages=300, shelf="read", isbn13="9780987654321"),
        Book(title="Book 2024", author="Author Three", date_read="2024/12/10",
             pages=150, shelf="read", isbn13="9781111111111"),
        Book(title="Currently Reading", author="Author Four", date_read="",
             pages=400, shelf="currently-reading"),
    ]


@pytest.fixture
def books():
    return make_books()


@pytest.fixture
def store():
    return FakeStore(make_books())


@pytest.fixture
def config():
    config = Config()
    config.ALLOWED_ORIGINS = "http://localhost:3000"
    config.FRONTEND_DIR = ""
    return config


@pytest.fixture
def authenticator():
    return Authenticator(password=PASSWORD, secret="test-secret")


@pytest.fixture
def client(store, config, authenticator):
    app = create_app(store, config, authenticator)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_client(client):
    response = client.post("/api/auth/login", json={"password": PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def store_factory():
    """Build extra stores for tests that need their own data."""
    return FakeStore
