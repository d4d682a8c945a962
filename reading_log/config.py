"""Configuration management."""
import os
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration, read from the environment and ``.env``."""

    # Database
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "readinglog")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")

    @property
    def DATABASE_URL(self):
        """PostgreSQL connection string; ``DATABASE_URL`` overrides the parts."""
        override = os.getenv("DATABASE_URL")
        if override:
            return override
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Auth
    READING_APP_PASSWORD = os.getenv("READING_APP_PASSWORD", "")
    JWT_SECRET = os.getenv("JWT_SECRET", "")
    TOKEN_TTL_DAYS = int(os.getenv("TOKEN_TTL_DAYS", "30"))
    COOKIE_SECURE = _env_bool("COOKIE_SECURE")

    # HTTP
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3000"))
    ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "")
    FRONTEND_DIR = os.getenv("FRONTEND_DIR", "frontend")

    # Legacy import
    BOOKS_JSON_PATH = os.getenv("BOOKS_JSON_PATH", "books.json")

    # Open Library client
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))
    DEFAULT_MAX_RETRIES = int(os.getenv("DEFAULT_MAX_RETRIES", "3"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    def allowed_origins(self) -> List[str]:
        """Parse the comma separated origin allowlist (default: localhost:3000)."""
        raw = self.ALLOWED_ORIGINS or "http://localhost:3000"
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
