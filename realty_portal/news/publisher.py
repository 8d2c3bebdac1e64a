"""Publishing news and generated posts to the Telegram channel."""

import logging
from datetime import datetime
from typing import Dict, Any, Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..database.crud import NewsArticleCRUD, ChannelPostCRUD
from ..models.news_models import NewsArticle
from ..telegram.client import TelegramClient
from ..telegram.formatting import format_news_post
from .content import ChannelContentGenerator

logger = logging.getLogger(__name__)


class PublishError(Exception):
    """Raised when Telegram refuses a channel post."""


class ChannelPublisher:
    """Posts stored articles and morning digests to the channel."""

    def __init__(self, db: Session, client: Optional[TelegramClient] = None,
                 content: Optional[ChannelContentGenerator] = None, channel_id: Optional[str] = None):
        self.db = db
        self.client = client or TelegramClient()
        self.content = content or ChannelContentGenerator(db)
        self.channel_id = channel_id or settings.telegram.channel_id

    def _send_article(self, article: NewsArticle) -> None:
        text, photo = format_news_post(article)
        if photo:
            result = self.client.send_photo(self.channel_id, photo, text)
        else:
            result = self.client.send_message(self.channel_id, text)

        if not result.get("ok"):
            raise PublishError(f"Failed to send to channel: {result.get('description')}")

        NewsArticleCRUD.mark_posted(self.db, article.id)
        logger.info(f"Article {article.id} posted to {self.channel_id}")

    def publish_article(self, article_id: int) -> Dict[str, Any]:
        """Post one article, then mark it posted.

        Raises:
            LookupError: If the article does not exist
            PublishError: If Telegram rejects the post
        """
        article = NewsArticleCRUD.get_by_id(self.db, article_id)
        if article is None:
            raise LookupError("Article not found")

        self._send_article(article)
        return {"success": True, "message": "Опубликовано в канал", "article_id": article.id}

    def auto_publish(self) -> Dict[str, Any]:
        """Post the most relevant processed article that is not posted yet."""
        article = NewsArticleCRUD.get_next_to_publish(self.db)
        if article is None:
            return {"success": False, "message": "Нет новых статей для публикации"}

        self._send_article(article)
        return {
            "success": True,
            "message": "Автоматически опубликовано",
            "article_id": article.id,
            "title": article.translated_title or article.original_title,
        }

    def morning_digest(self) -> Dict[str, Any]:
        """Generate the morning digest, post it and record it in channel_posts."""
        generated = self.content.generate("morning_digest")
        if not generated["success"]:
            raise PublishError(generated.get("error") or "No content generated")

        result = self.client.send_message(self.channel_id, generated["content"])
        if not result.get("ok"):
            raise PublishError(f"Failed to send morning digest to channel: {result.get('description')}")

        now = datetime.utcnow()
        post = ChannelPostCRUD.create(self.db, {
            "post_type": "morning_digest",
            "title": f"Утренний дайджест {now.strftime('%d.%m.%Y')}",
            "content": generated["content"],
            "status": "published",
            "published_at": now,
            "ai_generated": generated["ai_generated"],
        })

        return {"success": True, "message": "Утренний дайджест опубликован", "post_id": post.id}

    def stats(self) -> Dict[str, Any]:
        return {"success": True, "stats": NewsArticleCRUD.get_stats(self.db)}
