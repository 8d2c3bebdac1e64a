"""Transform module for cleaning and standardizing property data."""

import re
from typing import Dict, Any, Optional, Union
import logging
from datetime import datetime

from ..models.property_models import ExtractedProperty, Purpose, PropertyType

logger = logging.getLogger(__name__)

PURPOSE_ALIASES = {
    'rent': Purpose.FOR_RENT.value,
    'rental': Purpose.FOR_RENT.value,
    'for-rent': Purpose.FOR_RENT.value,
    'sale': Purpose.FOR_SALE.value,
    'buy': Purpose.FOR_SALE.value,
    'for-sale': Purpose.FOR_SALE.value,
}

PROPERTY_TYPES = {item.value.lower(): item.value for item in PropertyType}
PROPERTY_TYPES.update({'flat': 'Apartment', 'house': 'House', 'room': 'Room'})

SCRAPED_COLUMNS = [
    'external_id', 'title', 'description', 'price', 'price_currency', 'property_type',
    'purpose', 'bedrooms', 'bathrooms', 'area_sqft', 'location_area', 'location_city',
    'images', 'agent_name', 'agent_phone', 'raw_content'
]


class PropertyTransformer:
    """Handles transformation and standardization of property data."""

    def normalize(self, record: Union[ExtractedProperty, Dict[str, Any]]) -> Dict[str, Any]:
        """Clean a single property record.

        Args:
            record: Extracted property or a raw dict from a scraper

        Returns:
            Dict[str, Any]: Normalized property data
        """
        data = record.model_dump() if isinstance(record, ExtractedProperty) else dict(record)

        for field in ('title', 'description', 'location_area', 'agent_name', 'agent_phone'):
            data[field] = self._clean_text(data.get(field))

        data['price'] = self._clean_float(data.get('price'))
        if data['price'] is not None and data['price'] <= 0:
            data['price'] = None
        data['area_sqft'] = self._clean_float(data.get('area_sqft'))
        data['bedrooms'] = self._clean_int(data.get('bedrooms'))
        data['bathrooms'] = self._clean_int(data.get('bathrooms'))
        data['purpose'] = self._normalize_purpose(data.get('purpose'))
        data['property_type'] = self._normalize_property_type(data.get('property_type'))
        data['images'] = [image for image in (data.get('images') or []) if image]

        return data

    def to_listing_row(self, record: Union[ExtractedProperty, Dict[str, Any]], source: str,
                       source_name: Optional[str] = None, source_category: Optional[str] = None,
                       raw_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Build a property_listings row."""
        data = self.normalize(record)

        return {
            'external_id': data.get('external_id'),
            'source': source,
            'source_name': source_name or source,
            'source_category': source_category,
            'title': data.get('title'),
            'description': data.get('description'),
            'price': data.get('price'),
            'price_currency': data.get('price_currency') or 'AED',
            'property_type': data.get('property_type'),
            'purpose': data.get('purpose'),
            'bedrooms': data.get('bedrooms'),
            'bathrooms': data.get('bathrooms'),
            'area_sqft': data.get('area_sqft'),
            'location_area': data.get('location_area'),
            'location_city': data.get('location_city') or 'Dubai',
            'district': data.get('district'),
            'images': data.get('images'),
            'agent_name': data.get('agent_name'),
            'agent_phone': data.get('agent_phone'),
            'raw_data': raw_data if raw_data is not None else {'source_url': data.get('source_url')},
            'last_verified': datetime.utcnow(),
        }

    def to_scraped_row(self, record: Union[ExtractedProperty, Dict[str, Any]],
                       source_id: Optional[int]) -> Dict[str, Any]:
        """Build a scraped_properties row."""
        data = self.normalize(record)
        row = {column: data.get(column) for column in SCRAPED_COLUMNS}
        row['source_id'] = source_id
        row['price_currency'] = row['price_currency'] or 'AED'
        row['location_city'] = row['location_city'] or 'Dubai'
        return row

    @staticmethod
    def _clean_text(value: Any) -> Optional[str]:
        if value is None:
            return None
        text = re.sub(r'<[^>]+>', '', str(value))
        text = re.sub(r'[ \t]+', ' ', text)
        text = re.sub(r'\n\s*\n+', '\n', text).strip()
        return text or None

    @staticmethod
    def _clean_int(value: Any) -> Optional[int]:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return int(value)
        digits = re.sub(r'[^\d]', '', str(value))
        return int(digits) if digits else None

    @staticmethod
    def _clean_float(value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return float(value)
        digits = re.sub(r'[^\d.]', '', str(value))
        try:
            return float(digits) if digits else None
        except ValueError:
            logger.debug(f"Could not parse number: {value}")
            return None

    @staticmethod
    def _normalize_property_type(value: Any) -> Optional[str]:
        if not value:
            return None
        return PROPERTY_TYPES.get(str(value).strip().lower())

    @staticmethod
    def _normalize_purpose(value: Any) -> Optional[str]:
        if not value:
            return None
        return PURPOSE_ALIASES.get(str(value).strip().lower())
