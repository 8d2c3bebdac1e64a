"""Dubizzle Dubai search results scraper."""

from typing import Dict, Any, Optional

from ..models.property_models import ExtractedProperty
from .portal_scraper import PortalScraper


class DubizzleScraper(PortalScraper):
    """Scraper for Dubizzle listing cards."""

    name = "dubizzle"
    base_url = "https://dubai.dubizzle.com"
    id_prefix = "DB"
    card_selector = '.listing-item, .property-item, [data-testid="listing-item"]'

    TITLE_SELECTOR = '.listing-title, .property-title, h3, h2'
    PRICE_SELECTOR = '.price, .listing-price'
    LOCATION_SELECTOR = '.location, .listing-location'
    DETAILS_SELECTOR = '.listing-details, .property-details'

    def build_search_url(self, criteria: Dict[str, Any]) -> str:
        section = 'for-sale' if criteria.get('purpose') == 'for-sale' else 'for-rent'
        url = f"{self.base_url}/property-{section}/residential/"

        property_type = (criteria.get('property_type') or '').lower()
        if 'apartment' in property_type:
            url += 'apartmentflat/'
        elif 'villa' in property_type:
            url += 'villa/'

        return url

    def parse_card(self, card, criteria: Dict[str, Any]) -> Optional[ExtractedProperty]:
        location = criteria.get('location') or 'Dubai'
        title = self.safe_extract_text(card, self.TITLE_SELECTOR) or f"Property in {location}"
        details = self.safe_extract_text(card, self.DETAILS_SELECTOR)

        return ExtractedProperty(
            title=title,
            price=self.clean_price(self.safe_extract_text(card, self.PRICE_SELECTOR)),
            location_area=self.safe_extract_text(card, self.LOCATION_SELECTOR) or location,
            location_city='Dubai',
            bedrooms=self._first_int(details, r'(\d+)\s*(?:bed|br|bedroom)'),
            bathrooms=self._first_int(details, r'(\d+)\s*(?:bath|bathroom)'),
            area_sqft=self._area(details, r'(\d+(?:,\d+)*)\s*(?:sq\.?\s*ft|sqft)'),
            property_type=criteria.get('property_type') or 'Apartment',
            purpose=criteria['purpose'],
            raw_content=card.get_text(" ", strip=True)[:2000],
        )
