"""VNExpress news ingestion: fetch, score, translate and store articles."""

import logging
import time
import uuid
from typing import Dict, Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database.crud import NewsSourceCRUD, NewsArticleCRUD
from ..enrichment.ai_client import AIClient
from ..enrichment.enricher import Enricher
from ..enrichment.relevance import calculate_relevance_score
from ..etl.deduplication import DeduplicationEngine
from ..models.news_models import NewsArticle, NewsArticleSchema, NewsItem
from ..monitoring.logger import ETLLogger
from ..scrapers.exceptions import ScrapingError
from ..scrapers.rss_scraper import RSSScraper, VNEXPRESS_FEEDS, DEFAULT_CATEGORY, feed_url

logger = logging.getLogger(__name__)


class NewsService:
    """Fetches category feeds and keeps news_articles up to date."""

    def __init__(self, db: Session, enricher: Optional[Enricher] = None,
                 rss_scraper: Optional[RSSScraper] = None):
        self.db = db
        self.enricher = enricher or Enricher(AIClient(db=db))
        self.rss = rss_scraper or RSSScraper()
        self.dedup = DeduplicationEngine(db)

    def fetch_and_translate(self, category: Optional[str] = None, translate: bool = True,
                            limit: int = 5) -> Dict[str, Any]:
        """Fetch a category feed and store new articles.

        Every parsed item counts towards ``fetched``. Only the first ``limit``
        items are considered for saving, and links already stored are skipped.

        Args:
            category: Feed category, unknown values fall back to the latest news feed
            translate: Translate title and content to Russian
            limit: Maximum number of items to process

        Returns:
            Dict[str, Any]: success, fetched, saved and the saved articles
        """
        category = category if category in VNEXPRESS_FEEDS else DEFAULT_CATEGORY
        url = feed_url(category)
        etl_logger = ETLLogger("news", batch_id=uuid.uuid4().hex[:12])
        start_time = time.time()

        try:
            items = self.rss.scrape(url)
        except ScrapingError as e:
            logger.error(f"Could not fetch feed {url}: {e}")
            return {'success': False, 'error': str(e), 'fetched': 0, 'saved': 0, 'articles': []}

        etl_logger.log_batch_start(len(items), url)
        source = NewsSourceCRUD.upsert(self.db, f"VNExpress - {category}", url)

        saved: List[NewsArticle] = []
        duplicates = 0
        for item in items[:limit]:
            if self.dedup.is_duplicate(item.link, DeduplicationEngine.ARTICLES):
                logger.info(f"Article already exists: {item.title[:50]}...")
                duplicates += 1
                continue

            article = self._store(item, source.id, translate)
            if article is not None:
                saved.append(article)

        NewsSourceCRUD.record_fetch(self.db, source.id, len(saved))

        etl_logger.log_deduplication_results(min(len(items), limit), len(saved), duplicates)
        etl_logger.log_batch_complete(time.time() - start_time, True,
                                      {'fetched': len(items), 'saved': len(saved)})

        return {
            'success': True,
            'fetched': len(items),
            'saved': len(saved),
            'articles': [self.serialize(article) for article in saved],
        }

    def _store(self, item: NewsItem, source_id: int, translate: bool) -> Optional[NewsArticle]:
        relevance_score = calculate_relevance_score(item.title, item.description)

        translated_title = item.title
        translated_content = item.description
        if translate:
            logger.info(f"Translating: {item.title[:50]}...")
            translated_title = self.enricher.translate_title(item.title)
            translated_content = self.enricher.translate_content(item.description)

        try:
            return NewsArticleCRUD.create(self.db, {
                'source_id': source_id,
                'original_title': item.title,
                'original_content': item.description,
                'original_url': item.link,
                'translated_title': translated_title,
                'translated_content': translated_content,
                'published_date': item.published,
                'relevance_score': relevance_score,
                'images': item.images,
                'is_processed': translate,
            })
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Article {item.link} inserted concurrently, skipping")
            return None

    def get_articles(self, limit: int = 20) -> List[Dict[str, Any]]:
        return [self.serialize(article) for article in NewsArticleCRUD.get_recent(self.db, limit)]

    def translate_article(self, article_id: int) -> Dict[str, Any]:
        """Translate (or re-translate) one stored article.

        Raises:
            LookupError: If the article does not exist
        """
        article = NewsArticleCRUD.get_by_id(self.db, article_id)
        if article is None:
            raise LookupError(f"Article {article_id} not found")

        article.translated_title = self.enricher.translate_title(article.original_title)
        article.translated_content = self.enricher.translate_content(article.original_content or '')
        article.is_processed = True
        self.db.commit()
        self.db.refresh(article)

        return self.serialize(article)

    @staticmethod
    def serialize(article: NewsArticle) -> Dict[str, Any]:
        return NewsArticleSchema.model_validate(article).model_dump(mode='json')
