"""Generic website scraper that splits a page into listing-sized sections."""

import hashlib
import re
from typing import List, Optional

from ..config import settings
from ..etl.extractor import PropertyExtractor
from ..models.property_models import ExtractedProperty
from .base_scraper import BaseScraper, html_to_text

SECTION_SPLIT = re.compile(r'(?:Property|Apartment|Villa|Studio|Bedroom)', re.IGNORECASE)


class WebsiteScraper(BaseScraper):
    """Extracts properties from the plain text of an arbitrary listings page."""

    name = "website"

    def __init__(self, extractor: Optional[PropertyExtractor] = None, **kwargs):
        super().__init__(**kwargs)
        self.extractor = extractor or PropertyExtractor()
        self.min_section_length = settings.scraper.min_listing_length
        self.max_listings = settings.scraper.max_listings_per_source

    def scrape(self, target: str) -> List[ExtractedProperty]:
        """Scrape a website URL.

        Args:
            target: Page URL

        Returns:
            List[ExtractedProperty]: Properties found in the page sections
        """
        text = html_to_text(self.fetch(target))
        return self.extract_sections(text, target)

    def extract_sections(self, text: str, page_url: str) -> List[ExtractedProperty]:
        """Run the extractor over every long enough section of page text."""
        properties = []

        for section in SECTION_SPLIT.split(text):
            section = section.strip()
            if len(section) <= self.min_section_length:
                continue

            record = self.extractor.extract(section)
            if record is None:
                continue

            digest = hashlib.sha1(f"{page_url}|{section}".encode('utf-8')).hexdigest()[:16]
            record.external_id = f"web_{digest}"
            record.source_url = page_url
            properties.append(record)

            if len(properties) >= self.max_listings:
                break

        self.logger.info(f"Extracted {len(properties)} properties from {page_url}")
        return properties
