"""Base scraper class with rate limiting and common functionality."""

import random
import re
import logging
from abc import ABC, abstractmethod
from typing import List, Any, Optional
import requests
from bs4 import BeautifulSoup

from ..config import settings
from .exceptions import ScrapingError, FetchError, RateLimitError
from .rate_limiter import TokenBucket

__all__ = ["BaseScraper", "ScrapingError", "FetchError", "RateLimitError", "html_to_text"]

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:121.0) Gecko/20100101 Firefox/121.0"
]


def html_to_text(html: str) -> str:
    """Strip scripts, styles and tags from HTML, collapsing whitespace."""
    text = re.sub(r'<script[^>]*>.*?</script>', ' ', html, flags=re.IGNORECASE | re.DOTALL)
    text = re.sub(r'<style[^>]*>.*?</style>', ' ', text, flags=re.IGNORECASE | re.DOTALL)
    text = re.sub(r'<[^>]+>', ' ', text)
    return re.sub(r'\s+', ' ', text).strip()


class BaseScraper(ABC):
    """Base scraper class with rate limiting and common functionality."""

    name = "base"

    def __init__(self, rate_limiter: Optional[TokenBucket] = None,
                 session: Optional[requests.Session] = None):
        """Initialize the base scraper.

        Args:
            rate_limiter: Token bucket shared by this scraper's requests
            session: Optional pre-built requests session
        """
        self.logger = logging.getLogger(f"{__name__}.{self.name}")
        self.user_agents = USER_AGENTS

        self.rate_limiter = rate_limiter or TokenBucket(
            settings.scraper.requests_per_minute,
            capacity=settings.scraper.burst_size
        )
        self.timeout = settings.scraper.request_timeout
        self.session = session

    def _get_random_user_agent(self) -> str:
        """Get a random user agent string."""
        if settings.scraper.rotate_user_agents:
            return random.choice(self.user_agents)
        return self.user_agents[0]

    def _setup_session(self) -> requests.Session:
        """Set up a requests session with browser-like headers."""
        session = requests.Session()
        session.headers.update({
            'User-Agent': self._get_random_user_agent(),
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
            'Connection': 'keep-alive',
            'Upgrade-Insecure-Requests': '1',
        })
        return session

    def get_session(self) -> requests.Session:
        """Get or create a requests session."""
        if not self.session:
            self.session = self._setup_session()
        return self.session

    def fetch(self, url: str, **kwargs) -> str:
        """Fetch a page body, waiting on the rate limiter first.

        Args:
            url: The URL to request
            **kwargs: Additional arguments for requests

        Returns:
            str: Response body

        Raises:
            FetchError: On a network failure or a non-2xx status
        """
        self.rate_limiter.acquire()
        session = self.get_session()

        try:
            response = session.get(url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Request failed for {url}: {e}")
            raise FetchError(url, reason=str(e)) from e

        if not 200 <= response.status_code < 300:
            self.logger.warning(f"HTTP {response.status_code} for {url}")
            raise FetchError(url, status=response.status_code)

        return response.text

    def parse_html(self, html: str) -> BeautifulSoup:
        """Parse HTML content with BeautifulSoup."""
        return BeautifulSoup(html, 'html.parser')

    def safe_extract_text(self, element, selector: str, default: str = "") -> str:
        """Safely extract text from an element using a CSS selector.

        Args:
            element: BeautifulSoup element
            selector: CSS selector, comma separated alternatives allowed
            default: Default value if not found

        Returns:
            str: Extracted text or default value
        """
        found = element.select_one(selector)
        return found.get_text(" ", strip=True) if found else default

    def safe_extract_attribute(self, element, selector: str, attribute: str, default: str = "") -> str:
        """Safely extract an attribute from an element."""
        found = element.select_one(selector)
        if not found:
            return default
        value = found.get(attribute)
        return value if value else default

    def clean_price(self, price_text: str) -> Optional[float]:
        """Clean and convert price text to float.

        Args:
            price_text: Raw price text such as "AED 85,000 yearly"

        Returns:
            Optional[float]: Cleaned price or None if invalid
        """
        if not price_text:
            return None

        match = re.search(r'\d[\d,]*(?:\.\d+)?', price_text)
        if not match:
            self.logger.debug(f"Could not parse price: {price_text}")
            return None

        try:
            return float(match.group(0).replace(',', ''))
        except ValueError:
            return None

    def cleanup(self):
        """Clean up resources."""
        if self.session:
            try:
                self.session.close()
            finally:
                self.session = None

    @abstractmethod
    def scrape(self, target: Any) -> List[Any]:
        """Scrape one target and return the records found.

        Args:
            target: Scraper specific target such as a URL, channel or search criteria

        Returns:
            List[Any]: Extracted records, usually ExtractedProperty
        """
        pass

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.cleanup()
