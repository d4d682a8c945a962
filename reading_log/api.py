"""REST API for the reading log."""
import logging
import os
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field

from reading_log.auth import Authenticator, AuthError
from reading_log.client import OpenLibraryClient
from reading_log.config import Config
from reading_log.database import Database
from reading_log.dates import parse_integer, try_parse_date
from reading_log.filters import filter_by_month, filter_by_shelf, filter_by_year
from reading_log.models import Book
from reading_log.parse import cover_url_for, isbn_for
from reading_log.stats import calculate_monthly_breakdown, calculate_statistics, count_by_year

logger = logging.getLogger(__name__)

READ_SHELF = "read"
MIN_GOAL_YEAR = 2000
MAX_GOAL_YEAR = 2100

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type"


class BookRequest(BaseModel):
    """Body of book create/update requests."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    author: str = ""
    additional_authors: str = Field("", alias="additionalAuthors")
    isbn: str = ""
    isbn13: str = ""
    publisher: str = ""
    pages: int = 0
    year_published: int = Field(0, alias="yearPublished")
    original_publication_year: int = Field(0, alias="originalPublicationYear")
    date_read: str = Field("", alias="dateRead")
    date_added: str = Field("", alias="dateAdded")
    shelf: str = ""
    review: str = ""
    cover_url: str = Field("", alias="coverUrl")

    def to_book(self, book_id: Optional[int] = None) -> Book:
        return Book(id=book_id, **self.model_dump())


class GoalRequest(BaseModel):
    year: int
    target: int


class LoginRequest(BaseModel):
    password: str = ""


def get_store(request: Request) -> Database:
    return request.app.state.store


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def require_auth(
    request: Request,
    authenticator: Authenticator = Depends(get_authenticator)
):
    if not authenticator.is_authenticated(request):
        raise HTTPException(status_code=401, detail="Unauthorized")


def _parse_year(value: Optional[str]) -> int:
    if not value:
        raise HTTPException(status_code=400, detail="year parameter required")
    year = parse_integer(value)
    if year is None:
        raise HTTPException(status_code=400, detail="invalid year parameter")
    return year


def _book_summary(book: Book) -> dict:
    date = try_parse_date(book.date_read)
    return {
        "id": book.id,
        "title": book.title,
        "author": book.author,
        "dateRead": book.date_read,
        "pages": book.pages,
        "month": date.month if date else 0,
        "shelf": book.shelf,
        "isbn": isbn_for(book),
        "coverUrl": cover_url_for(book),
    }


def create_app(
    store: Database,
    config: Optional[Config] = None,
    authenticator: Optional[Authenticator] = None,
    lookup_client: Optional[OpenLibraryClient] = None
) -> FastAPI:
    """
    Build the API application around an explicit store.

    Args:
        store: Persistence handle; routes read it from ``app.state``
        config: Settings for origins and static files (defaults to ``Config()``)
        authenticator: Session checker (defaults to one built from config)
        lookup_client: Open Library client for the lookup endpoint

    Returns:
        Configured FastAPI application
    """
    config = config or Config()
    if authenticator is None:
        authenticator = Authenticator(
            password=config.READING_APP_PASSWORD,
            secret=config.JWT_SECRET,
            ttl_days=config.TOKEN_TTL_DAYS,
            secure_cookie=config.COOKIE_SECURE,
        )

    app = FastAPI(title="Reading Log")
    app.state.store = store
    app.state.authenticator = authenticator
    app.state.lookup_client = lookup_client

    allowed_origins = set(config.allowed_origins())

    @app.middleware("http")
    async def origin_allowlist(request: Request, call_next):
        origin = request.headers.get("origin")

        # No Origin header means a same-origin request
        if not origin:
            return await call_next(request)

        if origin not in allowed_origins:
            logger.warning(f"Rejected request from origin {origin}")
            return PlainTextResponse("Origin not allowed", status_code=403)

        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)

        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
        response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
        response.headers["Access-Control-Allow-Credentials"] = "true"
        return response

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": "Invalid request"})

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    @app.get("/api/years")
    def get_years(store: Database = Depends(get_store)):
        years = count_by_year(store.get_all_books(), shelf=READ_SHELF)
        return {"years": [y.to_dict() for y in years]}

    @app.get("/api/books")
    def get_books(
        year: Optional[str] = None,
        shelf: Optional[str] = None,
        month: Optional[str] = None,
        store: Database = Depends(get_store)
    ):
        target_year = _parse_year(year)
        # An unparseable month is ignored, like an absent one
        month_filter = parse_integer(month) if month else None

        books = filter_by_year(store.get_all_books(), target_year)
        if shelf:
            books = filter_by_shelf(books, shelf)
        if month_filter:
            books = filter_by_month(books, month_filter)

        return {"books": [_book_summary(book) for book in books]}

    @app.get("/api/books/{book_id}")
    def get_book(book_id: int, store: Database = Depends(get_store)):
        book = store.get_book(book_id)
        if book is None:
            raise HTTPException(status_code=404, detail="Book not found")
        return {"book": book.to_dict()}

    @app.post("/api/books", status_code=201, dependencies=[Depends(require_auth)])
    def create_book(body: BookRequest, store: Database = Depends(get_store)):
        if not body.title or not body.author:
            raise HTTPException(status_code=400, detail="Title and author are required")

        book = body.to_book()
        if not book.shelf:
            book.shelf = READ_SHELF

        book_id = store.create_book(book)
        return {"id": book_id}

    @app.put("/api/books/{book_id}", dependencies=[Depends(require_auth)])
    def update_book(book_id: int, body: BookRequest, store: Database = Depends(get_store)):
        if not store.update_book(body.to_book(book_id)):
            raise HTTPException(status_code=404, detail="Book not found")
        return {"success": True}

    @app.delete("/api/books/{book_id}", dependencies=[Depends(require_auth)])
    def delete_book(book_id: int, store: Database = Depends(get_store)):
        if not store.delete_book(book_id):
            raise HTTPException(status_code=404, detail="Book not found")
        return {"success": True}

    @app.get("/api/stats")
    def get_stats(year: Optional[str] = None, store: Database = Depends(get_store)):
        target_year = _parse_year(year)

        read_books = filter_by_shelf(filter_by_year(store.get_all_books(), target_year), READ_SHELF)
        stats = calculate_statistics(read_books, target_year)
        breakdown = calculate_monthly_breakdown(read_books)

        return {
            "year": stats.year,
            "totalBooks": stats.total_books,
            "totalPages": stats.total_pages,
            "averagePerMonth": stats.average_per_month,
            "monthlyBreakdown": [m.to_dict() for m in breakdown],
        }

    @app.get("/api/goals/{year}")
    def get_goal(year: str, store: Database = Depends(get_store)):
        target_year = _parse_year(year)
        goal = store.get_goal(target_year)
        return {"year": target_year, "target": goal.book_target if goal else None}

    @app.post("/api/goals", dependencies=[Depends(require_auth)])
    def set_goal(body: GoalRequest, store: Database = Depends(get_store)):
        if not MIN_GOAL_YEAR <= body.year <= MAX_GOAL_YEAR:
            raise HTTPException(status_code=400, detail="Invalid year")
        if body.target < 0:
            raise HTTPException(status_code=400, detail="Target must be non-negative")

        store.set_goal(body.year, body.target)
        return {"success": True}

    @app.post("/api/auth/login")
    def login(
        body: LoginRequest,
        response: Response,
        authenticator: Authenticator = Depends(get_authenticator)
    ):
        try:
            authenticator.check_password(body.password)
        except AuthError as e:
            logger.warning(f"Login failed: {e}")
            raise HTTPException(status_code=401, detail="Invalid password")

        authenticator.set_auth_cookie(response, authenticator.generate_token())
        return {"success": True}

    @app.post("/api/auth/logout")
    def logout(response: Response, authenticator: Authenticator = Depends(get_authenticator)):
        authenticator.clear_auth_cookie(response)
        return {"success": True}

    @app.get("/api/auth/check")
    def check_auth(request: Request, authenticator: Authenticator = Depends(get_authenticator)):
        return {"authenticated": authenticator.is_authenticated(request)}

    @app.get("/api/export", dependencies=[Depends(require_auth)])
    def export_books(store: Database = Depends(get_store)):
        books = [book.to_dict() for book in store.get_all_books()]
        return JSONResponse(
            content=books,
            headers={"Content-Disposition": "attachment; filename=books.json"},
        )

    @app.get("/api/lookup", dependencies=[Depends(require_auth)])
    def lookup(request: Request, isbn: Optional[str] = None, title: Optional[str] = None):
        client = request.app.state.lookup_client
        if client is None:
            raise HTTPException(status_code=503, detail="Lookup is not configured")

        if isbn:
            edition = client.get_by_isbn(isbn)
            if edition is None:
                raise HTTPException(status_code=404, detail="Book not found")
            return {"book": edition}
        if title:
            return {"books": client.search_by_title(title)}
        raise HTTPException(status_code=400, detail="isbn or title parameter required")

    frontend_dir = config.FRONTEND_DIR
    if frontend_dir and os.path.isdir(frontend_dir):
        admin_page = os.path.join(frontend_dir, "admin.html")

        @app.get("/admin", include_in_schema=False)
        @app.get("/admin/{rest:path}", include_in_schema=False)
        def admin(rest: str = ""):
            return FileResponse(admin_page)

        # Mounted last so the API routes above take precedence
        app.mount("/", StaticFiles(directory=frontend_dir, html=True), name="frontend")
    else:
        logger.info(f"Frontend directory {frontend_dir!r} not found, static files disabled")

    return app
