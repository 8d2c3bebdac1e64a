"""Shared flow for listing portals that render search results as cards."""

import hashlib
import re
from abc import abstractmethod
from typing import List, Dict, Any, Optional
from urllib.parse import urljoin

from ..models.property_models import ExtractedProperty
from .base_scraper import BaseScraper


class PortalScraper(BaseScraper):
    """Scrapes one search results page of a property portal."""

    base_url = ""
    id_prefix = ""
    card_selector = ""
    link_selector = "a[href]"

    def scrape(self, target: Dict[str, Any]) -> List[ExtractedProperty]:
        """Scrape a search results page.

        Args:
            target: Search criteria with location, property_type, purpose and limit

        Returns:
            List[ExtractedProperty]: Properties parsed from the result cards

        Raises:
            FetchError: If the results page cannot be fetched
        """
        criteria = dict(target or {})
        criteria['purpose'] = 'for-sale' if criteria.get('purpose') == 'for-sale' else 'for-rent'
        limit = int(criteria.get('limit') or 10)

        url = self.build_search_url(criteria)
        self.logger.info(f"Scraping {self.name} URL: {url}")

        soup = self.parse_html(self.fetch(url))
        cards = soup.select(self.card_selector)
        self.logger.info(f"Found {len(cards)} property cards on {self.name}")

        properties = []
        for index, card in enumerate(cards[:limit]):
            record = self.parse_card(card, criteria)
            if record is None:
                continue

            detail_url = self._detail_url(card, url)
            record.source_url = detail_url or url
            record.external_id = detail_url or self._fallback_id(url, record.title, index)
            properties.append(record)

        return properties

    @abstractmethod
    def build_search_url(self, criteria: Dict[str, Any]) -> str:
        """Build the portal search URL for the criteria."""
        pass

    @abstractmethod
    def parse_card(self, card, criteria: Dict[str, Any]) -> Optional[ExtractedProperty]:
        """Parse one result card."""
        pass

    def _detail_url(self, card, page_url: str) -> Optional[str]:
        href = self.safe_extract_attribute(card, self.link_selector, 'href')
        if not href or href.startswith('#') or href.startswith('javascript'):
            return None
        return urljoin(page_url, href)

    def _fallback_id(self, page_url: str, title: str, index: int) -> str:
        digest = hashlib.sha1(f"{page_url}|{title}|{index}".encode('utf-8')).hexdigest()[:16]
        return f"{self.id_prefix}-{digest}"

    @staticmethod
    def _first_int(text: str, pattern: str = r'(\d+)') -> Optional[int]:
        if not text:
            return None
        match = re.search(pattern, text, re.IGNORECASE)
        return int(match.group(1)) if match else None

    @staticmethod
    def _area(text: str, pattern: str = r'(\d+(?:,\d+)*)') -> Optional[float]:
        if not text:
            return None
        match = re.search(pattern, text, re.IGNORECASE)
        return float(match.group(1).replace(',', '')) if match else None
