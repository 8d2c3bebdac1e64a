"""LLM-backed text enrichment that never fails the caller."""

import logging
from typing import Dict, Any, Optional

from pydantic import ValidationError

from ..models.property_models import ExtractedProperty
from .ai_client import AIClient, EnrichmentError

logger = logging.getLogger(__name__)

TRANSLATE_TITLE = "translate_title"
TRANSLATE_CONTENT = "translate_content"
SUMMARIZE = "summarize"

PROMPTS = {
    TRANSLATE_TITLE: (
        "Ты профессиональный переводчик с вьетнамского на русский. Переводи заголовки "
        "новостей кратко и понятно. Отвечай только переводом, без пояснений.",
        200
    ),
    TRANSLATE_CONTENT: (
        "Ты профессиональный переводчик с вьетнамского на русский. Переводи текст новостей "
        "грамотно, сохраняя смысл. Отвечай только переводом.",
        1000
    ),
    SUMMARIZE: (
        "You summarize real estate listings and news in two or three sentences. "
        "Keep numbers, prices and place names. Answer with the summary only.",
        300
    ),
}

DESCRIPTION_PROMPT = """You are a premium real estate copywriter specializing in properties in Ho Chi Minh City and Dubai.
Write compelling, professional property descriptions in English that highlight:
- Key features and amenities
- Location advantages and neighborhood benefits
- Lifestyle benefits and unique selling points

Keep descriptions concise (150-200 words), professional, and appealing to international buyers and renters.
Do NOT use generic phrases. Be specific and authentic."""

TITLE_PROMPT = ("You are a real estate copywriter. Generate a short, compelling English property title "
                "(max 10 words). Be specific and professional. No quotes in output.")

CONSULTANT_PROMPT = """Ты эксперт по недвижимости в Дубае и Хошимине. Отвечай на русском языке.
Помогай пользователям с поиском недвижимости для покупки и аренды, анализом рынка,
советами по инвестициям и информацией о районах.
Давай конкретные, полезные советы. Будь дружелюбным и профессиональным."""

EXTRACTION_PROMPT = """You are a real estate listing parser.
Extract property information from the text provided. Return these fields:
- title: A descriptive title for the property (in English)
- price: Price as a number only, no currency symbols. Monthly rent in VND for Vietnam listings, AED for Dubai listings
- location_area: District or area name (e.g. "District 1", "Thao Dien", "Dubai Marina")
- property_type: Apartment, Studio, Villa, Townhouse, Penthouse, House or Room
- purpose: rent or sale
- bedrooms, bathrooms: integers
- area_sqft: area as a number
- images: image URLs found in the text
- agent_name, agent_phone: contact details if mentioned

If a field cannot be determined, use null. Be accurate with numbers."""

CHANNEL_POST_PROMPT = """Ты редактор Telegram-канала о жизни и аренде жилья в Сайгоне (Хошимин) для русскоязычных экспатов.
Пиши живо и по делу, используй эмодзи умеренно и HTML-разметку Telegram (<b>, <i>).
Пост не длиннее 900 символов. Отвечай только текстом поста."""

EXTRACT_PROPERTY_TOOL = {
    "type": "function",
    "function": {
        "name": "extract_property",
        "description": "Extract property details",
        "parameters": {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "price": {"type": ["number", "null"]},
                "location_area": {"type": ["string", "null"]},
                "property_type": {"type": ["string", "null"]},
                "purpose": {"type": ["string", "null"]},
                "bedrooms": {"type": ["integer", "null"]},
                "bathrooms": {"type": ["integer", "null"]},
                "area_sqft": {"type": ["number", "null"]},
                "images": {"type": "array", "items": {"type": "string"}},
                "agent_name": {"type": ["string", "null"]},
                "agent_phone": {"type": ["string", "null"]}
            },
            "required": ["title"]
        }
    }
}


class Enricher:
    """Applies LLM transformations to text.

    Every failure is logged and degrades gracefully: text transformations
    return their input unchanged and structured calls return None.
    """

    def __init__(self, client: Optional[AIClient] = None):
        self.client = client or AIClient()

    def transform(self, text: str, transformation: str) -> str:
        """Apply a named text transformation.

        Args:
            text: Input text
            transformation: One of translate_title, translate_content, summarize

        Returns:
            str: The transformed text, or the input when enrichment fails
        """
        if not text:
            return text

        if transformation not in PROMPTS:
            raise ValueError(f"Unknown transformation: {transformation}")

        system_prompt, max_tokens = PROMPTS[transformation]
        user_prompt = f"Переведи на русский: {text}" if transformation != SUMMARIZE else text

        try:
            return self.client.complete(system_prompt, user_prompt, max_tokens=max_tokens,
                                        endpoint=transformation)
        except EnrichmentError as e:
            logger.warning(f"Enrichment '{transformation}' failed, keeping original text: {e}")
            return text

    def translate_title(self, text: str) -> str:
        return self.transform(text, TRANSLATE_TITLE)

    def translate_content(self, text: str) -> str:
        return self.transform(text, TRANSLATE_CONTENT)

    def summarize(self, text: str) -> str:
        return self.transform(text, SUMMARIZE)

    def generate_description(self, property_data: Dict[str, Any]) -> Dict[str, Optional[str]]:
        """Write marketing copy and an English title for a listing.

        Args:
            property_data: Listing fields such as title, bedrooms, district and price

        Returns:
            Dict[str, Optional[str]]: ``description`` and ``title_en``, None where generation failed
        """
        price = property_data.get('price')
        currency = property_data.get('price_currency') or 'VND'
        location = property_data.get('district') or property_data.get('location_area') or 'Ho Chi Minh City'
        bedrooms = property_data.get('bedrooms') or 'Studio'

        user_prompt = "\n".join([
            "Write a compelling English property description for:",
            "",
            f"Title: {property_data.get('title')}",
            f"Type: {property_data.get('property_type') or 'Apartment'}",
            f"Location: {location}",
            f"Bedrooms: {bedrooms}",
            f"Bathrooms: {property_data.get('bathrooms') or 1}",
            f"Area: {property_data.get('area_sqft') or 'N/A'} sqm",
            f"Price: {f'{price:,.0f} {currency}' if price else 'Contact for price'}",
            f"Purpose: {'For Sale' if property_data.get('purpose') == 'for-sale' else 'For Rent'}",
        ])

        result: Dict[str, Optional[str]] = {"description": None, "title_en": None}

        try:
            result["description"] = self.client.complete(DESCRIPTION_PROMPT, user_prompt,
                                                         endpoint="generate_description")
        except EnrichmentError as e:
            logger.warning(f"Description generation failed: {e}")
            return result

        title_prompt = (f"Create an English title for: {property_data.get('title')}, {bedrooms} bedroom "
                        f"{property_data.get('property_type') or 'apartment'} in {location}")
        try:
            result["title_en"] = self.client.complete(TITLE_PROMPT, title_prompt, max_tokens=50,
                                                      endpoint="generate_title").strip('"')
        except EnrichmentError as e:
            logger.warning(f"Title generation failed: {e}")

        return result

    def extract_property(self, text: str, source: str = "text") -> Optional[ExtractedProperty]:
        """Extract a structured property with a forced function call.

        Returns:
            Optional[ExtractedProperty]: Parsed property, or None on any failure
        """
        if not text:
            return None

        try:
            arguments = self.client.call_tool(
                EXTRACTION_PROMPT,
                f"Parse this property listing from {source}:\n\n{text[:8000]}",
                EXTRACT_PROPERTY_TOOL,
                endpoint="extract_property"
            )
        except EnrichmentError as e:
            logger.warning(f"Structured extraction failed: {e}")
            return None

        arguments = {key: value for key, value in arguments.items() if value is not None}
        arguments.setdefault("raw_content", text)

        try:
            return ExtractedProperty(**arguments)
        except ValidationError as e:
            logger.warning(f"Structured extraction returned invalid fields: {e}")
            return None

    def consult(self, question: str) -> Optional[str]:
        """Answer a real estate question for the bot, None when unavailable."""
        try:
            return self.client.complete(CONSULTANT_PROMPT, question, max_tokens=1000,
                                        temperature=0.7, endpoint="consult")
        except EnrichmentError as e:
            logger.warning(f"Consultant answer failed: {e}")
            return None

    def generate_channel_post(self, post_type: str, context: str) -> Optional[str]:
        """Write a channel post of the given type from prepared context."""
        try:
            return self.client.complete(
                CHANNEL_POST_PROMPT,
                f"Тип поста: {post_type}\n\n{context}",
                max_tokens=1200,
                endpoint=f"channel_{post_type}"
            )
        except EnrichmentError as e:
            logger.warning(f"Channel post generation failed: {e}")
            return None
