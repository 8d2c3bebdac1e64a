"""Scrapers package."""

from .exceptions import ScrapingError, FetchError, RateLimitError
from .rate_limiter import TokenBucket
from .base_scraper import BaseScraper
from .website_scraper import WebsiteScraper
from .telegram_channel_scraper import TelegramChannelScraper
from .propertyfinder_scraper import PropertyFinderScraper
from .dubizzle_scraper import DubizzleScraper
from .batdongsan_scraper import BatdongsanScraper, DISTRICT_URLS
from .rss_scraper import RSSScraper, VNEXPRESS_FEEDS, feed_url

__all__ = [
    "ScrapingError",
    "FetchError",
    "RateLimitError",
    "TokenBucket",
    "BaseScraper",
    "WebsiteScraper",
    "TelegramChannelScraper",
    "PropertyFinderScraper",
    "DubizzleScraper",
    "BatdongsanScraper",
    "DISTRICT_URLS",
    "RSSScraper",
    "VNEXPRESS_FEEDS",
    "feed_url"
]
