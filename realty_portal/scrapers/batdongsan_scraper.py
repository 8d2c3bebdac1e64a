"""batdongsan.com.vn rental scraper for Ho Chi Minh City districts."""

import re
from typing import Callable, List, Optional
from urllib.parse import urljoin, quote_plus

from ..etl.extractor import extract_district
from ..models.property_models import ExtractedProperty
from .base_scraper import BaseScraper, html_to_text

DISTRICT_URLS = {
    'district-1': 'https://batdongsan.com.vn/cho-thue-can-ho-chung-cu-quan-1',
    'district-2': 'https://batdongsan.com.vn/cho-thue-can-ho-chung-cu-quan-2',
    'district-3': 'https://batdongsan.com.vn/cho-thue-can-ho-chung-cu-quan-3',
    'district-7': 'https://batdongsan.com.vn/cho-thue-can-ho-chung-cu-quan-7',
    'thao-dien': 'https://batdongsan.com.vn/cho-thue-can-ho-chung-cu-phuong-thao-dien',
}

SEARCH_URL = 'https://batdongsan.com.vn/cho-thue-can-ho-chung-cu-tp-hcm'
DETAIL_LINK = re.compile(r'-pr\d+$')

ListingParser = Callable[[str, str], Optional[ExtractedProperty]]


class BatdongsanScraper(BaseScraper):
    """Collects rental detail pages and parses them with a pluggable parser.

    The parser receives the page text and URL. The detail URL becomes the
    listing's external ID.
    """

    name = "batdongsan"

    MAX_LINKS_PER_DISTRICT = 15
    MAX_SEARCH_LINKS = 10

    def __init__(self, parser: ListingParser, **kwargs):
        super().__init__(**kwargs)
        self.parser = parser

    def district_links(self, district_key: str) -> List[str]:
        """Return rental detail links listed on a district page.

        Raises:
            ValueError: If the district is unknown
            FetchError: If the district page cannot be fetched
        """
        search_url = DISTRICT_URLS.get(district_key)
        if not search_url:
            raise ValueError(f"Unknown district: {district_key}")

        links = [
            link for link in self._page_links(search_url)
            if 'batdongsan.com.vn' in link and DETAIL_LINK.search(link) and '/ban-' not in link
        ]
        self.logger.info(f"Found {len(links)} rental apartment links in {district_key}")
        return links[:self.MAX_LINKS_PER_DISTRICT]

    def search_links(self, query: str = "") -> List[str]:
        """Return rental detail links from the city-wide keyword search."""
        url = SEARCH_URL + (f"?keyword={quote_plus(query)}" if query else "")

        links = [
            link for link in self._page_links(url)
            if '/cho-thue-can-ho' in link and '-pr' in link and '?' not in link and '/ban-' not in link
        ]
        self.logger.info(f"Found {len(links)} property links for '{query}'")
        return links[:self.MAX_SEARCH_LINKS]

    def scrape_listing(self, url: str) -> Optional[ExtractedProperty]:
        """Fetch and parse one detail page."""
        text = html_to_text(self.fetch(url))
        record = self.parser(text, url)
        if record is None:
            return None

        record.external_id = url
        record.source_url = url
        record.location_city = 'Ho Chi Minh City'
        record.price_currency = 'VND'
        record.purpose = 'for-rent'
        record.district = (extract_district(record.title)
                           or extract_district(text[:500])
                           or record.location_area)
        return record

    def scrape(self, target: str) -> List[ExtractedProperty]:
        """Scrape every detail page linked from a district page.

        Args:
            target: District key such as ``district-7``

        Returns:
            List[ExtractedProperty]: Parsed listings
        """
        properties = []
        for url in self.district_links(target):
            record = self.scrape_listing(url)
            if record is not None:
                properties.append(record)
        return properties

    def _page_links(self, url: str) -> List[str]:
        soup = self.parse_html(self.fetch(url))
        links = []
        for anchor in soup.select('a[href]'):
            link = urljoin(url, anchor['href']).split('#')[0]
            if link not in links:
                links.append(link)
        return links
