"""Telegram Bot API client, bot handlers and message formatting."""

from .client import TelegramClient
from .formatting import escape_html, format_price, format_listing, format_listing_detail, format_news_post
from .handlers import BotHandler, BOT_COMMANDS

__all__ = [
    "TelegramClient",
    "BotHandler",
    "BOT_COMMANDS",
    "escape_html",
    "format_price",
    "format_listing",
    "format_listing_detail",
    "format_news_post",
]
