"""Celery configuration and setup."""

from celery import Celery
from celery.schedules import crontab
import logging

from ..config import settings

logger = logging.getLogger(__name__)

# Create Celery app
celery_app = Celery(
    "realty_portal",
    broker=settings.redis.redis_url,
    backend=settings.redis.redis_url,
    include=["realty_portal.tasks.scheduled_tasks"]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    result_expires=3600,  # 1 hour

    # One task at a time per worker process, scrapers hold their own rate limits
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=200,

    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_track_started=True,

    beat_schedule={
        "hourly-source-scraping": {
            "task": "realty_portal.tasks.scheduled_tasks.scrape_sources",
            "schedule": crontab(minute=0),  # Every hour
        },

        "hourly-news-fetch": {
            "task": "realty_portal.tasks.scheduled_tasks.fetch_news",
            "schedule": crontab(minute=15),
            "kwargs": {"category": "tin-tuc-24h"}
        },

        "news-auto-publish": {
            "task": "realty_portal.tasks.scheduled_tasks.auto_publish_news",
            "schedule": crontab(minute=30, hour="1-15/2"),  # 08:30-22:30 Asia/Ho_Chi_Minh, every 2 hours
        },

        "daily-morning-digest": {
            "task": "realty_portal.tasks.scheduled_tasks.publish_morning_digest",
            "schedule": crontab(hour=0, minute=30),  # 07:30 Asia/Ho_Chi_Minh
        },

        "daily-batdongsan-scraping": {
            "task": "realty_portal.tasks.scheduled_tasks.scrape_batdongsan_districts",
            "schedule": crontab(hour=20, minute=0),  # 03:00 Asia/Ho_Chi_Minh
        },
    },

    beat_schedule_filename="celerybeat-schedule"
)


@celery_app.on_after_finalize.connect
def setup_celery_logging(sender, **kwargs):
    """Set up logging when Celery is ready."""
    from ..monitoring.logger import setup_logging
    setup_logging()
    logger.info("Celery worker initialized")


if __name__ == "__main__":
    celery_app.start()
