"""Background tasks package."""

from .celery import celery_app
from .scheduled_tasks import (
    scrape_sources,
    fetch_news,
    auto_publish_news,
    publish_morning_digest,
    scrape_batdongsan_districts,
)

__all__ = [
    "celery_app",
    "scrape_sources",
    "fetch_news",
    "auto_publish_news",
    "publish_morning_digest",
    "scrape_batdongsan_districts",
]
