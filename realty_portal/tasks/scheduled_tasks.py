"""Scheduled Celery tasks for ingestion and channel publishing."""

from typing import Dict, Any, Optional
import logging

from .celery import celery_app
from ..database.connection import SessionLocal
from ..etl.pipeline import IngestionPipeline
from ..news.publisher import ChannelPublisher, PublishError
from ..news.service import NewsService

logger = logging.getLogger(__name__)


@celery_app.task(name="realty_portal.tasks.scheduled_tasks.scrape_sources")
def scrape_sources(source_id: Optional[int] = None) -> Dict[str, Any]:
    """Scrape every active data source, or a single one.

    Args:
        source_id: Optional data source ID

    Returns:
        Dict[str, Any]: Pipeline results
    """
    logger.info(f"Starting source scraping (source_id={source_id})")

    db = SessionLocal()
    try:
        result = IngestionPipeline(db).run_sources(source_id)
        logger.info(f"Source scraping finished: {result['total_saved']} of {result['total_found']} saved")
        return result

    except Exception as e:
        logger.error(f"Error running source scraping: {e}")
        raise

    finally:
        db.close()


@celery_app.task(name="realty_portal.tasks.scheduled_tasks.fetch_news")
def fetch_news(category: Optional[str] = None) -> Dict[str, Any]:
    """Fetch and translate the latest VNExpress articles."""
    db = SessionLocal()
    try:
        result = NewsService(db).fetch_and_translate(category)
        # Articles are lists of dicts, not needed in the task result
        result.pop('articles', None)
        return result

    finally:
        db.close()


@celery_app.task(name="realty_portal.tasks.scheduled_tasks.auto_publish_news")
def auto_publish_news() -> Dict[str, Any]:
    """Post the best unpublished article to the channel."""
    db = SessionLocal()
    try:
        return ChannelPublisher(db).auto_publish()

    except PublishError as e:
        logger.error(f"Auto-publish failed: {e}")
        return {'success': False, 'error': str(e)}

    finally:
        db.close()


@celery_app.task(name="realty_portal.tasks.scheduled_tasks.publish_morning_digest")
def publish_morning_digest() -> Dict[str, Any]:
    db = SessionLocal()
    try:
        return ChannelPublisher(db).morning_digest()

    except PublishError as e:
        logger.error(f"Morning digest failed: {e}")
        return {'success': False, 'error': str(e)}

    finally:
        db.close()


@celery_app.task(name="realty_portal.tasks.scheduled_tasks.scrape_batdongsan_districts")
def scrape_batdongsan_districts() -> Dict[str, Any]:
    """Import fresh rentals from the batdongsan.com.vn district pages."""
    db = SessionLocal()
    try:
        result = IngestionPipeline(db).run_batdongsan('auto')
        logger.info(f"Batdongsan auto-scrape imported {result['imported']} properties")
        return result

    finally:
        db.close()
