"""Exceptions raised by scrapers and rate limiters."""

from typing import Optional


class ScrapingError(Exception):
    """Custom exception for scraping errors."""
    pass


class FetchError(ScrapingError):
    """Raised when a page cannot be fetched or returns a non-2xx status."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status = status
        self.reason = reason
        message = f"Failed to fetch {url}"
        if status is not None:
            message += f": HTTP {status}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class RateLimitError(ScrapingError):
    """Exception raised when a token cannot be acquired in time."""
    pass
