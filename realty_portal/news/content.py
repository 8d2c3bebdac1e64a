"""AI-written posts for the Saigon channel."""

import logging
from datetime import datetime
from typing import Dict, Any, List, Optional

import requests
from sqlalchemy.orm import Session

from ..database.crud import NewsArticleCRUD, PropertyListingCRUD, DistrictReviewCRUD
from ..enrichment.ai_client import AIClient
from ..enrichment.enricher import Enricher
from ..models.property_models import PropertyListing
from ..telegram.formatting import escape_html

logger = logging.getLogger(__name__)

WEATHER_URL = "https://api.open-meteo.com/v1/forecast"
WEATHER_PARAMS = {
    "latitude": 10.8231,
    "longitude": 106.6297,
    "current": "temperature_2m,weather_code",
    "timezone": "Asia/Ho_Chi_Minh",
}
DEFAULT_WEATHER = "около 30°C, возможен дождь"
DEFAULT_DISTRICT = "District 2"

# Outlines for posts that need no database context
STATIC_BRIEFS = {
    "evening_entertainment": (
        "Вечерний пост «Куда пойти сегодня» в Хошимине: 2-3 бара, 2-3 ресторана, "
        "события вечера, как добраться (Grab/такси), районы, call-to-action."
    ),
    "prices_update": (
        "Пост «Актуальные цены в Хошимине»: аренда (студия 6-10 млн VND, 1BR 8-15 млн, 2BR 12-25 млн), "
        "еда (фо 30-50к, капучино 40-60к, ресторан 200-400к), транспорт (Grab 5 км 30-50к, байк 3-5 млн/мес), "
        "SIM 100-200к/мес, совет по экономии, call-to-action."
    ),
    "visa_guide": (
        "Гайд по визам во Вьетнам для россиян: безвизовый режим 45 дней, e-visa 90 дней, бизнес-виза, "
        "продление, штрафы за просрочку, визаран, call-to-action."
    ),
    "sport_fitness": (
        "Пост про спорт и фитнес в Хошимине: фитнес-клубы (California Fitness от 1.5 млн VND/мес, "
        "CitiGym от 800к), бесплатные активности, бассейны, йога, совет экспатам, call-to-action."
    ),
}

POST_TYPES = ("morning_digest", "district_review", "apartment_week") + tuple(STATIC_BRIEFS)


def describe_weather(temperature: float, weather_code: int) -> str:
    """Turn an open-meteo reading into a short Russian description."""
    if weather_code >= 61:
        description = "🌧 дождь"
    elif weather_code >= 51:
        description = "🌦 облачно с прояснениями"
    elif weather_code >= 1:
        description = "⛅ переменная облачность"
    else:
        description = "☀️ солнечно"
    return f"{round(temperature)}°C, {description}"


def _listing_lines(listing: PropertyListing) -> List[str]:
    price = f"{listing.price:,.0f} {listing.price_currency or 'VND'}/мес" if listing.price else "цена по запросу"
    return [
        f"- {listing.title}",
        f"- Цена: {price}",
        f"- Район: {listing.location_area or listing.district or 'HCMC'}",
        f"- Комнат: {listing.bedrooms or '?'} спальни, {listing.bathrooms or '?'} ванные",
        f"- Площадь: {listing.area_sqft or '?'} м²",
    ]


class ChannelContentGenerator:
    """Builds post context from stored data and asks the enricher to write the post."""

    def __init__(self, db: Session, enricher: Optional[Enricher] = None,
                 session: Optional[requests.Session] = None, timeout: int = 10):
        self.db = db
        self.enricher = enricher or Enricher(AIClient(db=db))
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_weather(self) -> str:
        """Current weather in Ho Chi Minh City, or a seasonal default."""
        try:
            response = self.session.get(WEATHER_URL, params=WEATHER_PARAMS, timeout=self.timeout)
            response.raise_for_status()
            current = response.json().get("current") or {}
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.info(f"Weather fetch failed, using default: {e}")
            return DEFAULT_WEATHER

        return describe_weather(current.get("temperature_2m") or 30, current.get("weather_code") or 0)

    def build_context(self, post_type: str, district: Optional[str] = None) -> str:
        """Collect the facts a post of ``post_type`` should be written from.

        Raises:
            ValueError: If the post type is unknown
        """
        if post_type == "morning_digest":
            return self._digest_context()
        if post_type == "district_review":
            return self._district_context(district or DEFAULT_DISTRICT)
        if post_type == "apartment_week":
            latest = PropertyListingCRUD.get_latest(self.db, 1)
            if not latest:
                return "Обзор «Квартира недели»: опиши типичную квартиру в District 2."
            lines = _listing_lines(latest[0])
            if latest[0].agent_name:
                lines.append(f"- Агент: {latest[0].agent_name}")
            return "Обзор «Квартира недели». Квартира:\n" + "\n".join(lines)
        if post_type in STATIC_BRIEFS:
            return STATIC_BRIEFS[post_type]

        raise ValueError(f"Unknown post type: {post_type}")

    def _digest_context(self) -> str:
        news = NewsArticleCRUD.get_latest_translated(self.db, 3)
        latest = PropertyListingCRUD.get_latest(self.db, 1)

        news_section = "\n".join(f"{index}. {article.translated_title}" for index, article in enumerate(news, 1))
        listing_section = "\n".join(_listing_lines(latest[0])) if latest else "- 2-комнатная в District 2, Thao Dien"

        return (
            "Утренний дайджест. Используй только эти данные.\n\n"
            f"🌡 Погода в Хошимине сегодня: {self.get_weather()}\n\n"
            f"📰 Новости дня (VNExpress):\n{news_section or '- нет свежих новостей'}\n\n"
            f"🏠 Квартира дня:\n{listing_section}\n\n"
            "Закончи строкой «💬 Вопросы по аренде? → @saigon_realty_bot» и хэштегами "
            "#SaigonMorning #HCM #Вьетнам #Экспаты"
        )

    def _district_context(self, district: str) -> str:
        parts = [f"Пост «Район дня» для района {district} в Хошимине."]

        review = DistrictReviewCRUD.get_by_district(self.db, district)
        if review:
            parts.append(
                "Данные о районе:\n"
                f"- Описание: {review.description}\n"
                f"- Средняя аренда 1BR: {review.avg_rent_1br} VND\n"
                f"- Средняя аренда 2BR: {review.avg_rent_2br} VND\n"
                f"- Инфраструктура: {review.infrastructure_score}/10\n"
                f"- Для экспатов: {review.expat_friendly_score}/10\n"
                f"- Ночная жизнь: {review.nightlife_score}/10\n"
                f"- Для семей: {review.family_score}/10"
            )

        listings = PropertyListingCRUD.get_by_area(self.db, district, 5)
        if listings:
            parts.append("Примеры квартир в районе:\n" + "\n".join(
                f"- {listing.title}: {listing.price} VND, {listing.bedrooms}BR" for listing in listings
            ))

        return "\n\n".join(parts)

    def fallback_digest(self) -> str:
        """Plain morning digest assembled without the AI gateway."""
        news = NewsArticleCRUD.get_latest_translated(self.db, 3)
        latest = PropertyListingCRUD.get_latest(self.db, 1)

        lines = ["🌅 <b>Доброе утро, Вьетнам!</b>", "", f"☀️ Погода в Хошимине: {self.get_weather()}"]
        if news:
            lines += ["", "📰 <b>Главное за сутки:</b>"]
            lines += [
                f"{index}. {escape_html(article.translated_title or article.original_title)}"
                for index, article in enumerate(news, 1)
            ]
        if latest:
            lines += ["", "🏠 <b>Квартира дня:</b>"] + [escape_html(line) for line in _listing_lines(latest[0])]
        lines += ["", "💬 Вопросы по аренде? → @saigon_realty_bot", "", "#SaigonMorning #HCM #Вьетнам #Экспаты"]
        return "\n".join(lines)

    def generate(self, post_type: str, district: Optional[str] = None) -> Dict[str, Any]:
        """Write a post.

        Morning digests fall back to a template when the AI gateway fails,
        other post types report ``success: False``.

        Returns:
            Dict[str, Any]: success, content, post_type and ai_generated
        """
        context = self.build_context(post_type, district)
        logger.info(f"Generating content for: {post_type}")

        content = self.enricher.generate_channel_post(post_type, context)
        ai_generated = content is not None

        if content is None and post_type == "morning_digest":
            content = self.fallback_digest()

        if not content:
            return {"success": False, "error": "No content generated", "post_type": post_type}

        return {
            "success": True,
            "content": content,
            "post_type": post_type,
            "ai_generated": ai_generated,
            "generated_at": datetime.utcnow().isoformat(),
        }
