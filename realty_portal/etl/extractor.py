"""Rule-based property extraction from free text."""

import re
import logging
from typing import Optional, List, Pattern

from ..models.property_models import ExtractedProperty, PropertyType

logger = logging.getLogger(__name__)


class PropertyExtractor:
    """Extracts a single property record from listing text such as a channel post.

    Each field has an ordered list of patterns. The first pattern that matches
    wins. Matching is case-insensitive and understands English, Russian and
    Arabic unit words.
    """

    MIN_PRICE = 1000
    MAX_TITLE_LENGTH = 200

    LISTING_KEYWORDS = ['bed', 'aed', 'apartment', 'villa', 'studio', 'rent', 'sale', 'sqft']

    DUBAI_LOCATIONS = [
        'Dubai Marina', 'JBR', 'Downtown Dubai', 'Business Bay', 'DIFC', 'JLT',
        'Dubai Hills', 'Arabian Ranches', 'Emirates Hills', 'Palm Jumeirah',
        'JVC', 'Dubai South', 'Motor City', 'Sports City', 'International City',
        'Discovery Gardens', 'Jumeirah', 'Bur Dubai', 'Deira', 'Al Barsha',
        'Meadows', 'Springs', 'Lakes', 'Greens', 'Views', 'Mirdif'
    ]

    def __init__(self):
        """Initialize the extractor with compiled patterns."""
        self.price_patterns = self._compile([
            r'(?:AED|درهم)\s*([0-9,]+(?:\.[0-9]+)?)',
            r'([0-9,]+(?:\.[0-9]+)?)\s*(?:AED|درهم|K|Million)',
            r'Price:\s*([0-9,]+)',
        ])
        self.bedroom_patterns = self._compile([
            r'(\d+)\s*(?:bed|bedroom|BR|спальн|غرف)',
            r'bedroom[s]?:\s*(\d+)',
        ])
        self.bathroom_patterns = self._compile([
            r'(\d+)\s*(?:bath|bathroom|ванн|حمام)',
            r'bathroom[s]?:\s*(\d+)',
        ])
        self.area_patterns = self._compile([
            r'(\d+(?:,\d+)?)\s*(?:sqft|sq\.ft|кв\.м|متر)',
            r'area:\s*(\d+)',
        ])
        self.phone_patterns = self._compile([
            r'(?:\+971|971|0)\s*[0-9]{1,2}\s*[0-9]{3}\s*[0-9]{4}',
            r'(?:\+971|971)\s*[0-9]{8,9}',
        ])

        # Checked in priority order
        self.type_patterns = [
            (re.compile(r'villa', re.IGNORECASE), PropertyType.VILLA),
            (re.compile(r'apartment|flat', re.IGNORECASE), PropertyType.APARTMENT),
            (re.compile(r'studio', re.IGNORECASE), PropertyType.STUDIO),
            (re.compile(r'townhouse', re.IGNORECASE), PropertyType.TOWNHOUSE),
            (re.compile(r'penthouse', re.IGNORECASE), PropertyType.PENTHOUSE),
        ]

    @staticmethod
    def _compile(patterns: List[str]) -> List[Pattern]:
        return [re.compile(pattern, re.IGNORECASE) for pattern in patterns]

    def extract(self, text: str) -> Optional[ExtractedProperty]:
        """Extract a property from raw text.

        Args:
            text: Listing text, one post or page section

        Returns:
            Optional[ExtractedProperty]: The property, or None if the text is not a listing
        """
        if not text or not self.looks_like_listing(text):
            return None

        title = text.strip().split('\n')[0].strip()[:self.MAX_TITLE_LENGTH]
        if not title:
            return None

        property_type = self.extract_property_type(text)

        return ExtractedProperty(
            title=title,
            description=text.strip(),
            price=self.extract_price(text),
            property_type=property_type.value if property_type else None,
            purpose=self.extract_purpose(text),
            bedrooms=self._first_int(self.bedroom_patterns, text),
            bathrooms=self._first_int(self.bathroom_patterns, text),
            area_sqft=self._first_number(self.area_patterns, text),
            location_area=self.extract_location(text),
            location_city="Dubai",
            agent_phone=self.extract_phone(text),
            raw_content=text,
        )

    def looks_like_listing(self, text: str) -> bool:
        """Check the text for at least one listing keyword."""
        lowered = text.lower()
        return any(keyword in lowered for keyword in self.LISTING_KEYWORDS)

    def extract_price(self, text: str) -> Optional[float]:
        """Return the first price above the minimum, trying patterns in order."""
        for pattern in self.price_patterns:
            match = pattern.search(text)
            if not match:
                continue
            value = self._to_number(match.group(1))
            if value is not None and value > self.MIN_PRICE:
                return value
        return None

    def extract_phone(self, text: str) -> Optional[str]:
        """Return the first UAE phone number in the text."""
        for pattern in self.phone_patterns:
            match = pattern.search(text)
            if match:
                return match.group(0).strip()
        return None

    def extract_property_type(self, text: str) -> Optional[PropertyType]:
        for pattern, property_type in self.type_patterns:
            if pattern.search(text):
                return property_type
        return None

    def extract_purpose(self, text: str) -> Optional[str]:
        lowered = text.lower()
        if 'rent' in lowered or 'rental' in lowered:
            return 'rent'
        if 'sale' in lowered or 'buy' in lowered:
            return 'sale'
        return None

    def extract_location(self, text: str) -> Optional[str]:
        """Return the first known Dubai area mentioned in the text."""
        lowered = text.lower()
        for location in self.DUBAI_LOCATIONS:
            if location.lower() in lowered:
                return location
        return None

    def _first_int(self, patterns: List[Pattern], text: str) -> Optional[int]:
        value = self._first_number(patterns, text)
        return int(value) if value is not None else None

    def _first_number(self, patterns: List[Pattern], text: str) -> Optional[float]:
        for pattern in patterns:
            match = pattern.search(text)
            if match:
                value = self._to_number(match.group(1))
                if value is not None:
                    return value
        return None

    @staticmethod
    def _to_number(raw: str) -> Optional[float]:
        try:
            return float(raw.replace(',', ''))
        except (ValueError, AttributeError):
            return None


# Indicators for Ho Chi Minh City listings posted in Telegram chats
LISTING_INDICATORS = [
    re.compile(r'\d+\s*(triệu|tr|million|usd|\$)', re.IGNORECASE),
    re.compile(r'\d+\s*(m2|m²|sqm|square)', re.IGNORECASE),
    re.compile(r'\d+\s*(pn|phòng ngủ|bedroom|br|bed)', re.IGNORECASE),
    re.compile(r'(cho thuê|for rent|rent|căn hộ|apartment|studio|villa)', re.IGNORECASE),
    re.compile(r'(quận|district|thảo điền|thao dien|phú mỹ hưng|binh thanh)', re.IGNORECASE),
]

DISTRICT_PATTERNS = [
    (re.compile(r'Th[aả]o\s*[ĐD]i[eề]n', re.IGNORECASE), 'Thảo Điền'),
    (re.compile(r'B[iì]nh\s*Th[aạ]nh', re.IGNORECASE), 'Bình Thạnh'),
    (re.compile(r'Th[uủ]\s*[ĐD][uứ]c', re.IGNORECASE), 'Thủ Đức'),
]


def is_property_listing(text: str) -> bool:
    """Check whether a chat message looks like a rental listing.

    At least two indicators must match and the message must be longer
    than 50 characters.
    """
    if not text or len(text) <= 50:
        return False
    matches = sum(1 for regex in LISTING_INDICATORS if regex.search(text))
    return matches >= 2


def extract_district(title: str) -> Optional[str]:
    """Extract a district from a Vietnamese title, e.g. "Quận 7" gives "7"."""
    if not title:
        return None

    match = re.search(r'Qu[aậ]n\s*(\d+)', title, re.IGNORECASE)
    if match:
        return match.group(1)

    for pattern, district in DISTRICT_PATTERNS:
        if pattern.search(title):
            return district
    return None
