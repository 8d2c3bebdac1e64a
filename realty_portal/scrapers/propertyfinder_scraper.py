"""PropertyFinder.ae search results scraper."""

from typing import Dict, Any, Optional

from ..models.property_models import ExtractedProperty
from .portal_scraper import PortalScraper


class PropertyFinderScraper(PortalScraper):
    """Scraper for PropertyFinder search result cards."""

    name = "propertyfinder"
    base_url = "https://www.propertyfinder.ae"
    id_prefix = "PF"
    card_selector = '[data-testid="property-card"], .property-card, .search-result-property-card'

    TITLE_SELECTOR = 'h2, .property-title, [data-testid="property-title"]'
    PRICE_SELECTOR = '.price, [data-testid="property-price"], .property-price'
    LOCATION_SELECTOR = '.location, [data-testid="property-location"], .property-location'
    BEDS_SELECTOR = '[data-testid="property-beds"], .beds, .bedrooms'
    BATHS_SELECTOR = '[data-testid="property-baths"], .baths, .bathrooms'
    AREA_SELECTOR = '[data-testid="property-area"], .area, .property-area'

    def build_search_url(self, criteria: Dict[str, Any]) -> str:
        section = 'property-for-sale' if criteria.get('purpose') == 'for-sale' else 'property-for-rent'
        url = f"{self.base_url}/{section}/"

        location = (criteria.get('location') or '').lower()
        if 'dubai' in location:
            url += 'dubai/'

        property_type = (criteria.get('property_type') or '').lower()
        if 'apartment' in property_type:
            url += 'residential/'
        elif 'villa' in property_type:
            url += 'villa/'

        return url

    def parse_card(self, card, criteria: Dict[str, Any]) -> Optional[ExtractedProperty]:
        location = criteria.get('location') or 'Dubai'
        title = self.safe_extract_text(card, self.TITLE_SELECTOR) or f"Property in {location}"

        images = [img.get('src') for img in card.select('img[src]') if img.get('src', '').startswith('http')]

        return ExtractedProperty(
            title=title,
            price=self.clean_price(self.safe_extract_text(card, self.PRICE_SELECTOR)),
            location_area=self.safe_extract_text(card, self.LOCATION_SELECTOR) or location,
            location_city='Dubai',
            bedrooms=self._first_int(self.safe_extract_text(card, self.BEDS_SELECTOR)),
            bathrooms=self._first_int(self.safe_extract_text(card, self.BATHS_SELECTOR)),
            area_sqft=self._area(self.safe_extract_text(card, self.AREA_SELECTOR)),
            property_type=criteria.get('property_type') or 'Apartment',
            purpose=criteria['purpose'],
            images=images,
            raw_content=card.get_text(" ", strip=True)[:2000],
        )
