"""Async HTTP client for checking many Open Library covers in parallel."""
import asyncio
import httpx
from typing import Dict, List, Optional
import logging

from reading_log.parse import COVER_URL_TEMPLATE

logger = logging.getLogger(__name__)


class AsyncOpenLibraryClient:
    """Async client that confirms which ISBNs have a cover on Open Library."""

    def __init__(
        self,
        timeout: int = 10,
        max_concurrent: int = 5
    ):
        """
        Initialize async client.

        Args:
            timeout: Request timeout
            max_concurrent: Maximum concurrent requests
        """
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self.client = httpx.AsyncClient(timeout=timeout)

    async def fetch_cover(self, isbn: str) -> Optional[str]:
        """
        Check whether Open Library has a cover for an ISBN.

        Args:
            isbn: ISBN-10 or ISBN-13

        Returns:
            Cover URL, or None if there is no cover or the request failed
        """
        url = COVER_URL_TEMPLATE.format(isbn=isbn)

        async with self.semaphore:
            try:
                # default=false makes missing covers a 404 instead of a blank image
                response = await self.client.head(url, params={"default": "false"})
            except httpx.HTTPError as e:
                logger.error(f"Cover check failed for {isbn}: {e}")
                return None

        # The covers service redirects to the image on its archive host
        if response.status_code in (200, 302):
            return url
        if response.status_code != 404:
            logger.warning(f"Status {response.status_code} for cover {isbn}")
        return None

    async def fetch_covers(self, isbns: List[str]) -> Dict[str, str]:
        """
        Check many ISBNs in parallel.

        Args:
            isbns: ISBNs to check

        Returns:
            Mapping of ISBN to cover URL for the ISBNs that have one
        """
        tasks = [self.fetch_cover(isbn) for isbn in isbns]
        results = await asyncio.gather(*tasks)
        return {isbn: url for isbn, url in zip(isbns, results) if url}

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
