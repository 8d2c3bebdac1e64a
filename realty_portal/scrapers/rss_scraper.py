"""RSS feed reader for VNExpress news categories."""

import re
import calendar
import logging
from datetime import datetime
from typing import List, Optional

import feedparser
import requests

from ..models.news_models import NewsItem
from .base_scraper import BaseScraper

logger = logging.getLogger(__name__)

VNEXPRESS_FEEDS = {
    'tin-tuc-24h': 'https://vnexpress.net/rss/tin-moi-nhat.rss',
    'bat-dong-san': 'https://vnexpress.net/rss/bat-dong-san.rss',
    'kinh-doanh': 'https://vnexpress.net/rss/kinh-doanh.rss',
    'doi-song': 'https://vnexpress.net/rss/doi-song.rss',
    'du-lich': 'https://vnexpress.net/rss/du-lich.rss',
}
DEFAULT_CATEGORY = 'tin-tuc-24h'

IMG_SRC = re.compile(r'<img[^>]+src=["\']([^"\']+)["\']', re.IGNORECASE)


def feed_url(category: Optional[str]) -> str:
    """Resolve a category to its feed URL, falling back to the latest news feed."""
    return VNEXPRESS_FEEDS.get(category or DEFAULT_CATEGORY, VNEXPRESS_FEEDS[DEFAULT_CATEGORY])


class RSSScraper(BaseScraper):
    """Fetches an RSS feed through the rate-limited session and parses it with feedparser."""

    name = "rss"

    MAX_ITEMS = 10
    MAX_DESCRIPTION_LENGTH = 500

    def _setup_session(self) -> requests.Session:
        session = super()._setup_session()
        session.headers['Accept'] = 'application/rss+xml, application/xml;q=0.9, */*;q=0.8'
        return session

    def scrape(self, target: str) -> List[NewsItem]:
        """Fetch and parse a feed.

        Args:
            target: Feed URL

        Returns:
            List[NewsItem]: Up to ten items in feed order
        """
        return self.parse_feed(self.fetch(target))

    def parse_feed(self, content: str) -> List[NewsItem]:
        """Parse feed XML into news items."""
        feed = feedparser.parse(content)
        if feed.bozo and not feed.entries:
            logger.warning(f"Feed could not be parsed: {feed.get('bozo_exception')}")

        items = []
        for entry in feed.entries[:self.MAX_ITEMS]:
            title = (entry.get('title') or '').strip()
            link = (entry.get('link') or '').strip()
            if not title or not link:
                continue

            raw_description = entry.get('summary') or entry.get('description') or ''
            items.append(NewsItem(
                title=title,
                link=link,
                description=self.strip_html(raw_description)[:self.MAX_DESCRIPTION_LENGTH],
                published=self._published(entry),
                images=IMG_SRC.findall(raw_description)[:1],
            ))

        return items

    @staticmethod
    def strip_html(text: str) -> str:
        text = re.sub(r'<[^>]+>', ' ', text or '')
        return re.sub(r'\s+', ' ', text).strip()

    @staticmethod
    def _published(entry) -> Optional[datetime]:
        parsed = entry.get('published_parsed') or entry.get('updated_parsed')
        if not parsed:
            return None
        return datetime.utcfromtimestamp(calendar.timegm(parsed))
