"""HTML message templates for the bot and the channel."""

from typing import Dict, Any, Optional, Tuple, Union

from ..models.news_models import NewsArticle
from ..models.property_models import PropertyListing

NEWS_CONTENT_LIMIT = 900
NEWS_HASHTAGS = "#новости #вьетнам #сайгон"

Listing = Union[PropertyListing, Dict[str, Any]]


def escape_html(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _field(listing: Listing, name: str) -> Any:
    if isinstance(listing, dict):
        return listing.get(name)
    return getattr(listing, name, None)


def format_price(price: Optional[float], currency: Optional[str] = "VND") -> str:
    """Format a price with thousands separators, dots for VND like vi-VN."""
    if not price:
        return "Price on request"

    currency = currency or "VND"
    try:
        amount = f"{float(price):,.0f}"
    except (TypeError, ValueError):
        return f"{price} {currency}"
    if currency == "VND":
        amount = amount.replace(",", ".")
    return f"{amount} {currency}"


def _area(listing: Listing) -> str:
    area = _field(listing, "area_sqft")
    if not area:
        return "N/A"
    return f"{area:g} m²" if isinstance(area, (int, float)) else f"{area} m²"


def format_listing(listing: Listing, index: int) -> str:
    """One entry of a search result list."""
    title = escape_html(_field(listing, "title") or "")
    location = escape_html(_field(listing, "location_area") or "Ho Chi Minh City")

    return (
        f"\n<b>{index}. {title}</b>\n\n"
        f"💰 <b>Price:</b> {format_price(_field(listing, 'price'), _field(listing, 'price_currency'))}\n"
        f"📍 <b>Location:</b> {location}\n"
        f"🛏 <b>Bedrooms:</b> {_field(listing, 'bedrooms') or 'N/A'}\n"
        f"🚿 <b>Bathrooms:</b> {_field(listing, 'bathrooms') or 'N/A'}\n"
        f"📐 <b>Area:</b> {_area(listing)}\n\n"
        f"ID: <code>{_field(listing, 'id')}</code>\n"
    )


def format_listing_detail(listing: Listing) -> str:
    title = escape_html(_field(listing, "title") or "")
    location = escape_html(_field(listing, "location_area") or "Ho Chi Minh City")

    return (
        f"🏠 <b>{title}</b>\n\n"
        f"💰 <b>Price:</b> {format_price(_field(listing, 'price'), _field(listing, 'price_currency'))}\n"
        f"📍 <b>Location:</b> {location}\n"
        f"🏢 <b>Type:</b> {_field(listing, 'property_type') or 'Apartment'}\n"
        f"🛏 <b>Bedrooms:</b> {_field(listing, 'bedrooms') or 'N/A'}\n"
        f"🚿 <b>Bathrooms:</b> {_field(listing, 'bathrooms') or 'N/A'}\n"
        f"📐 <b>Area:</b> {_area(listing)}\n\n"
        "📞 Contact our agent for viewing!"
    )


def format_new_property(listing: Listing) -> str:
    """Group announcement for a freshly imported listing."""
    title = escape_html(_field(listing, "title") or "")
    location = escape_html(_field(listing, "location_area") or "Ho Chi Minh City")

    return (
        "🆕 <b>New Property Listed!</b>\n\n"
        f"<b>{title}</b>\n\n"
        f"💰 {format_price(_field(listing, 'price'), _field(listing, 'price_currency'))}\n"
        f"📍 {location}\n"
        f"🛏 {_field(listing, 'bedrooms') or 'N/A'} bedrooms\n"
        f"📐 {_area(listing)}\n\n"
        "Contact us for details! 📞"
    )


def format_news_post(article: NewsArticle) -> Tuple[str, Optional[str]]:
    """Build a channel post for a news article.

    Args:
        article: Stored news article

    Returns:
        Tuple[str, Optional[str]]: HTML text and the photo URL to attach, if any
    """
    title = article.translated_title or article.original_title
    content = article.translated_content or article.original_content or ""
    if len(content) > NEWS_CONTENT_LIMIT:
        content = content[:NEWS_CONTENT_LIMIT] + "..."

    post = f"📰 <b>{escape_html(title)}</b>\n\n"
    post += f"{escape_html(content)}\n\n"
    if article.original_url:
        post += f"🔗 {article.original_url}\n\n"
    post += NEWS_HASHTAGS

    photo = article.images[0] if article.images else None
    return post, photo
