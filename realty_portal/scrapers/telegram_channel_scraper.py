"""Scraper for public Telegram channels via their t.me web preview."""

import re
from typing import List, Optional

from ..config import settings
from ..etl.extractor import PropertyExtractor
from ..models.property_models import ExtractedProperty
from .base_scraper import BaseScraper

BACKGROUND_URL = re.compile(r"background-image:\s*url\(['\"]?([^'\")]+)['\"]?\)")


class TelegramChannelScraper(BaseScraper):
    """Reads recent posts of a public channel from https://t.me/s/<username>.

    Each post text goes through the regex extractor. Posts are identified by
    ``tg_<username>_<post id>`` so re-scraping the same channel is idempotent.
    """

    name = "telegram"
    preview_url = "https://t.me/s/{username}"

    def __init__(self, extractor: Optional[PropertyExtractor] = None, **kwargs):
        super().__init__(**kwargs)
        self.extractor = extractor or PropertyExtractor()
        self.max_listings = settings.scraper.max_listings_per_source

    def scrape(self, target: str) -> List[ExtractedProperty]:
        """Scrape a channel.

        Args:
            target: Channel username, with or without the leading @

        Returns:
            List[ExtractedProperty]: Properties found in the channel posts
        """
        username = target.lstrip('@').strip()
        url = self.preview_url.format(username=username)
        soup = self.parse_html(self.fetch(url))

        properties = []
        for message in soup.select('.tgme_widget_message'):
            text_el = message.select_one('.tgme_widget_message_text')
            if text_el is None:
                continue

            record = self.extractor.extract(text_el.get_text("\n", strip=True))
            if record is None:
                continue

            post = message.get('data-post', '')
            post_id = post.rsplit('/', 1)[-1] if post else None
            if not post_id:
                continue

            record.external_id = f"tg_{username}_{post_id}"
            record.source_url = f"https://t.me/{username}/{post_id}"
            record.images = self._images(message)
            properties.append(record)

        self.logger.info(f"Extracted {len(properties)} properties from @{username}")
        return properties[-self.max_listings:]

    @staticmethod
    def _images(message) -> List[str]:
        images = []
        for wrap in message.select('.tgme_widget_message_photo_wrap'):
            match = BACKGROUND_URL.search(wrap.get('style', ''))
            if match:
                images.append(match.group(1))
        return images
