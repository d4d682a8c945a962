"""HTTP client for the Open Library API with resilience patterns."""
import time
import random
import requests
from typing import Optional, Dict, Any, List
import logging

logger = logging.getLogger(__name__)

USER_AGENT = "ReadingLog/1.0 (personal reading tracker)"


class OpenLibraryClient:
    """Client for Open Library search and edition lookups with timeouts, retries, and backoff."""

    BASE_URL = "https://openlibrary.org"
    COVERS_URL = "https://covers.openlibrary.org"

    def __init__(
        self,
        timeout: int = 10,
        max_retries: int = 3,
        base_backoff: float = 1.0
    ):
        """
        Initialize Open Library client.

        Args:
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            base_backoff: Base delay for exponential backoff
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_backoff = base_backoff

        # Create session for connection pooling
        self.session = requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT

    def search_by_title(self, title: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Search works by title.

        Args:
            title: Title to search for
            limit: Maximum results to return

        Returns:
            Normalized search results (empty if nothing matched or the request failed)
        """
        data = self._make_request_with_retry(
            f"{self.BASE_URL}/search.json",
            {"title": title, "limit": limit}
        )
        if not data:
            return []

        results = []
        for doc in data.get("docs") or []:
            cover_id = doc.get("cover_i")
            results.append({
                "title": doc.get("title", ""),
                "authors": doc.get("author_name") or [],
                "firstPublishYear": doc.get("first_publish_year"),
                "workKey": doc.get("key"),
                "editionCount": doc.get("edition_count") or 0,
                "coverUrl": f"{self.COVERS_URL}/b/id/{cover_id}-M.jpg" if cover_id else None,
                "isbn": (doc.get("isbn") or [])[:3],
                "publisher": (doc.get("publisher") or [])[:3],
            })
        return results

    def get_by_isbn(self, isbn: str) -> Optional[Dict[str, Any]]:
        """
        Look up a single edition by ISBN.

        Args:
            isbn: ISBN-10 or ISBN-13

        Returns:
            Edition details or None if not found
        """
        data = self._make_request_with_retry(
            f"{self.BASE_URL}/api/volumes/brief/isbn/{isbn}.json",
            {}
        )
        if not data or not data.get("records"):
            return None

        # First record is the best match
        record = next(iter(data["records"].values()))
        info = record.get("data") or {}
        identifiers = info.get("identifiers") or {}

        return {
            "title": info.get("title", ""),
            "authors": [a.get("name", "") for a in info.get("authors") or []],
            "publishers": [p.get("name", "") for p in info.get("publishers") or []],
            "publishDate": info.get("publish_date"),
            "pages": info.get("number_of_pages"),
            "isbn13": identifiers.get("isbn_13") or [],
            "isbn10": identifiers.get("isbn_10") or [],
            "coverUrl": (info.get("cover") or {}).get("medium"),
        }

    def _make_request_with_retry(
        self,
        url: str,
        params: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Make HTTP request with retry logic.

        Args:
            url: Request URL
            params: Query parameters

        Returns:
            Response JSON or None if all retries exhausted
        """
        for attempt in range(self.max_retries):
            try:
                logger.info(f"Request attempt {attempt + 1}/{self.max_retries}: {url}")

                response = self.session.get(
                    url,
                    params=params,
                    timeout=self.timeout
                )

                if response.status_code == 200:
                    return response.json()

                elif response.status_code == 429:
                    # Rate limited - must retry with backoff
                    logger.warning(f"Rate limited (429) on attempt {attempt + 1}")
                    if attempt < self.max_retries - 1:
                        self._backoff(attempt)
                        continue

                elif response.status_code >= 500:
                    logger.warning(f"Server error ({response.status_code}) on attempt {attempt + 1}")
                    if attempt < self.max_retries - 1:
                        self._backoff(attempt)
                        continue

                elif response.status_code >= 400:
                    # Client error - don't retry
                    logger.error(f"Client error ({response.status_code}) for {url}")
                    return None

                else:
                    logger.error(f"Unexpected status ({response.status_code}) for {url}")
                    return None

            except requests.exceptions.Timeout:
                logger.warning(f"Timeout on attempt {attempt + 1}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue

            except requests.exceptions.ConnectionError as e:
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue

            except ValueError as e:
                logger.error(f"Invalid JSON from {url}: {e}")
                return None

        logger.error(f"All {self.max_retries} attempts failed")
        return None

    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
        """
        delay = self.base_backoff * (2 ** attempt)
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter

        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
