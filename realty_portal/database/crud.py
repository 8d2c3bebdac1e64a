"""CRUD operations for database models."""

from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_, desc, func
from datetime import datetime
import logging

from ..models.property_models import DataSource, PropertyListing, ScrapedProperty
from ..models.scraper_models import ScrapingJob, ScrapingStatus, ScrapingJobUpdate, ApiUsageLog
from ..models.news_models import NewsSource, NewsArticle, ChannelPost, DistrictReview
from ..models.bot_models import SearchHistory, UserPreferences

logger = logging.getLogger(__name__)


class DataSourceCRUD:
    """CRUD operations for DataSource model."""

    @staticmethod
    def get_by_id(db: Session, source_id: int) -> Optional[DataSource]:
        """Get data source by ID."""
        return db.query(DataSource).filter(DataSource.id == source_id).first()

    @staticmethod
    def get_active(db: Session, source_id: Optional[int] = None) -> List[DataSource]:
        """Get active data sources, optionally restricted to one ID."""
        query = db.query(DataSource).filter(DataSource.is_active.is_(True))
        if source_id is not None:
            query = query.filter(DataSource.id == source_id)
        return query.order_by(DataSource.id).all()

    @staticmethod
    def get_all(db: Session) -> List[DataSource]:
        """Get all data sources ordered by name."""
        return db.query(DataSource).order_by(DataSource.name).all()

    @staticmethod
    def create(db: Session, source_data: Dict[str, Any]) -> DataSource:
        """Create a new data source."""
        db_source = DataSource(**source_data)
        db.add(db_source)
        db.commit()
        db.refresh(db_source)
        return db_source

    @staticmethod
    def mark_scraped(db: Session, source_id: int) -> None:
        """Record the time a source was last scraped."""
        db_source = DataSourceCRUD.get_by_id(db, source_id)
        if db_source:
            db_source.last_scraped_at = datetime.utcnow()
            db.commit()


class ScrapingJobCRUD:
    """CRUD operations for ScrapingJob model."""

    @staticmethod
    def get_by_id(db: Session, job_id: int) -> Optional[ScrapingJob]:
        """Get scraping job by ID."""
        return db.query(ScrapingJob).filter(ScrapingJob.id == job_id).first()

    @staticmethod
    def create(db: Session, source_id: Optional[int],
               status: ScrapingStatus = ScrapingStatus.PENDING,
               metadata: Optional[Dict[str, Any]] = None) -> ScrapingJob:
        """Create a new scraping job."""
        db_job = ScrapingJob(
            source_id=source_id,
            status=status.value,
            job_metadata=metadata,
            started_at=datetime.utcnow() if status == ScrapingStatus.RUNNING else None
        )
        db.add(db_job)
        db.commit()
        db.refresh(db_job)
        return db_job

    @staticmethod
    def update(db: Session, job_id: int, job_data: ScrapingJobUpdate) -> Optional[ScrapingJob]:
        """Update a scraping job."""
        db_job = ScrapingJobCRUD.get_by_id(db, job_id)
        if not db_job:
            return None

        update_data = job_data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if isinstance(value, ScrapingStatus):
                value = value.value
            setattr(db_job, key, value)

        # Set timestamps based on status
        if job_data.status == ScrapingStatus.RUNNING and not db_job.started_at:
            db_job.started_at = datetime.utcnow()
        elif job_data.status in (ScrapingStatus.COMPLETED, ScrapingStatus.FAILED):
            db_job.completed_at = datetime.utcnow()

        db.commit()
        db.refresh(db_job)
        return db_job

    @staticmethod
    def get_recent(db: Session, limit: int = 50) -> List[ScrapingJob]:
        """Get the most recent scraping jobs."""
        return db.query(ScrapingJob).order_by(desc(ScrapingJob.created_at), desc(ScrapingJob.id)).limit(limit).all()


class PropertyListingCRUD:
    """CRUD operations for PropertyListing model."""

    @staticmethod
    def get_by_id(db: Session, listing_id: int) -> Optional[PropertyListing]:
        """Get listing by ID."""
        return db.query(PropertyListing).filter(PropertyListing.id == listing_id).first()

    @staticmethod
    def get_by_external_id(db: Session, external_id: str) -> Optional[PropertyListing]:
        """Get listing by external ID."""
        return db.query(PropertyListing).filter(PropertyListing.external_id == external_id).first()

    @staticmethod
    def create(db: Session, listing_data: Dict[str, Any]) -> PropertyListing:
        """Create a new listing."""
        db_listing = PropertyListing(**listing_data)
        db.add(db_listing)
        db.commit()
        db.refresh(db_listing)
        return db_listing

    @staticmethod
    def search(db: Session, query: Optional[str] = None, purpose: Optional[str] = None,
               limit: int = 5, district: Optional[str] = None) -> List[PropertyListing]:
        """Search listings by free-text terms, purpose and district.

        A listing matches when any term of three or more characters appears in
        its title, area or district. A district number must match the stored
        district or an area named "District N" or "Quận N".

        Args:
            db: Database session
            query: Free-text query
            purpose: Optional purpose filter ('for-rent' or 'for-sale')
            limit: Maximum number of results
            district: Optional district number such as "7"

        Returns:
            List[PropertyListing]: Matching listings, newest first
        """
        db_query = db.query(PropertyListing)

        if purpose:
            db_query = db_query.filter(PropertyListing.purpose == purpose)

        if district:
            db_query = db_query.filter(or_(
                PropertyListing.district == district,
                PropertyListing.location_area.ilike(f"District {district}"),
                PropertyListing.location_area.ilike(f"Quận {district}"),
            ))

        terms = [term for term in (query or "").split() if len(term) >= 3]
        if terms:
            conditions = []
            for term in terms:
                pattern = f"%{term}%"
                conditions.extend([
                    PropertyListing.title.ilike(pattern),
                    PropertyListing.location_area.ilike(pattern),
                    PropertyListing.district.ilike(pattern),
                ])
            db_query = db_query.filter(or_(*conditions))

        return db_query.order_by(desc(PropertyListing.created_at), desc(PropertyListing.id)).limit(limit).all()

    @staticmethod
    def get_by_area(db: Session, area: str, limit: int = 5) -> List[PropertyListing]:
        """Get listings whose area or district contains ``area``."""
        pattern = f"%{area}%"
        return db.query(PropertyListing).filter(
            or_(PropertyListing.location_area.ilike(pattern), PropertyListing.district.ilike(pattern))
        ).order_by(desc(PropertyListing.created_at), desc(PropertyListing.id)).limit(limit).all()

    @staticmethod
    def get_latest(db: Session, limit: int = 1) -> List[PropertyListing]:
        """Get the newest listings."""
        return db.query(PropertyListing).order_by(desc(PropertyListing.created_at), desc(PropertyListing.id)).limit(limit).all()

    @staticmethod
    def get_all(db: Session, limit: Optional[int] = None) -> List[PropertyListing]:
        """Get all listings, optionally limited."""
        query = db.query(PropertyListing).order_by(PropertyListing.id)
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def count(db: Session) -> int:
        """Count stored listings."""
        return db.query(func.count(PropertyListing.id)).scalar()


class ScrapedPropertyCRUD:
    """CRUD operations for ScrapedProperty model."""

    @staticmethod
    def get_by_external_id(db: Session, external_id: str) -> Optional[ScrapedProperty]:
        """Get scraped property by external ID."""
        return db.query(ScrapedProperty).filter(ScrapedProperty.external_id == external_id).first()

    @staticmethod
    def create(db: Session, property_data: Dict[str, Any]) -> ScrapedProperty:
        """Create a new scraped property."""
        db_property = ScrapedProperty(**property_data)
        db.add(db_property)
        db.commit()
        db.refresh(db_property)
        return db_property

    @staticmethod
    def get_by_source(db: Session, source_id: int) -> List[ScrapedProperty]:
        """Get scraped properties for one source."""
        return db.query(ScrapedProperty).filter(ScrapedProperty.source_id == source_id).all()


class NewsSourceCRUD:
    """CRUD operations for NewsSource model."""

    @staticmethod
    def get_by_name(db: Session, source_name: str) -> Optional[NewsSource]:
        """Get news source by name."""
        return db.query(NewsSource).filter(NewsSource.source_name == source_name).first()

    @staticmethod
    def upsert(db: Session, source_name: str, source_url: str) -> NewsSource:
        """Get a news source by name, creating it if missing."""
        existing = NewsSourceCRUD.get_by_name(db, source_name)
        if existing:
            existing.source_url = source_url
            existing.is_active = True
            db.commit()
            return existing

        db_source = NewsSource(source_name=source_name, source_url=source_url, is_active=True)
        db.add(db_source)
        db.commit()
        db.refresh(db_source)
        return db_source

    @staticmethod
    def record_fetch(db: Session, source_id: int, new_articles: int) -> None:
        """Bump the article counter and last fetch time."""
        db_source = db.query(NewsSource).filter(NewsSource.id == source_id).first()
        if db_source:
            db_source.articles_count = (db_source.articles_count or 0) + new_articles
            db_source.last_scraped_at = datetime.utcnow()
            db.commit()


class NewsArticleCRUD:
    """CRUD operations for NewsArticle model."""

    @staticmethod
    def get_by_id(db: Session, article_id: int) -> Optional[NewsArticle]:
        """Get article by ID."""
        return db.query(NewsArticle).filter(NewsArticle.id == article_id).first()

    @staticmethod
    def get_by_url(db: Session, url: str) -> Optional[NewsArticle]:
        """Get article by original URL."""
        return db.query(NewsArticle).filter(NewsArticle.original_url == url).first()

    @staticmethod
    def create(db: Session, article_data: Dict[str, Any]) -> NewsArticle:
        """Create a new article."""
        db_article = NewsArticle(**article_data)
        db.add(db_article)
        db.commit()
        db.refresh(db_article)
        return db_article

    @staticmethod
    def get_recent(db: Session, limit: int = 20) -> List[NewsArticle]:
        """Get the newest articles."""
        return db.query(NewsArticle).order_by(desc(NewsArticle.published_date), desc(NewsArticle.id)).limit(limit).all()

    @staticmethod
    def get_latest_translated(db: Session, limit: int = 3) -> List[NewsArticle]:
        """Get the newest articles that have a translated title."""
        return db.query(NewsArticle).filter(
            NewsArticle.translated_title.isnot(None)
        ).order_by(desc(NewsArticle.created_at), desc(NewsArticle.id)).limit(limit).all()

    @staticmethod
    def get_next_to_publish(db: Session) -> Optional[NewsArticle]:
        """Get the most relevant unposted article, newest first on ties."""
        return db.query(NewsArticle).filter(
            NewsArticle.is_posted.is_(False),
            NewsArticle.is_processed.is_(True),
            NewsArticle.translated_title.isnot(None)
        ).order_by(
            desc(NewsArticle.relevance_score),
            desc(NewsArticle.published_date),
            desc(NewsArticle.id)
        ).first()

    @staticmethod
    def mark_posted(db: Session, article_id: int) -> None:
        """Mark an article as published to the channel."""
        db_article = NewsArticleCRUD.get_by_id(db, article_id)
        if db_article:
            db_article.is_posted = True
            db.commit()

    @staticmethod
    def get_stats(db: Session) -> Dict[str, int]:
        """Get publishing counters."""
        total = db.query(func.count(NewsArticle.id)).scalar()
        posted = db.query(func.count(NewsArticle.id)).filter(NewsArticle.is_posted.is_(True)).scalar()
        pending = db.query(func.count(NewsArticle.id)).filter(
            NewsArticle.is_posted.is_(False),
            NewsArticle.is_processed.is_(True)
        ).scalar()
        return {"total": total, "posted": posted, "pending": pending}


class ChannelPostCRUD:
    """CRUD operations for ChannelPost model."""

    @staticmethod
    def create(db: Session, post_data: Dict[str, Any]) -> ChannelPost:
        """Create a new channel post."""
        db_post = ChannelPost(**post_data)
        db.add(db_post)
        db.commit()
        db.refresh(db_post)
        return db_post


class DistrictReviewCRUD:
    """CRUD operations for DistrictReview model."""

    @staticmethod
    def get_by_district(db: Session, district: str) -> Optional[DistrictReview]:
        """Get review by district name."""
        return db.query(DistrictReview).filter(DistrictReview.district.ilike(district)).first()

    @staticmethod
    def get_all(db: Session) -> List[DistrictReview]:
        """Get all district reviews."""
        return db.query(DistrictReview).order_by(DistrictReview.district).all()


class SearchHistoryCRUD:
    """CRUD operations for SearchHistory model."""

    @staticmethod
    def create(db: Session, telegram_user_id: int, search_query: str, results_count: int,
               search_filters: Optional[Dict[str, Any]] = None) -> SearchHistory:
        """Record a bot search."""
        db_entry = SearchHistory(
            telegram_user_id=telegram_user_id,
            search_query=search_query,
            results_count=results_count,
            search_filters=search_filters
        )
        db.add(db_entry)
        db.commit()
        db.refresh(db_entry)
        return db_entry


class UserPreferencesCRUD:
    """CRUD operations for UserPreferences model."""

    @staticmethod
    def get(db: Session, telegram_user_id: int) -> Optional[UserPreferences]:
        """Get preferences for a user."""
        return db.query(UserPreferences).filter(UserPreferences.telegram_user_id == telegram_user_id).first()

    @staticmethod
    def upsert(db: Session, telegram_user_id: int, **fields) -> UserPreferences:
        """Create or update preferences for a user."""
        db_prefs = UserPreferencesCRUD.get(db, telegram_user_id)
        if db_prefs is None:
            db_prefs = UserPreferences(telegram_user_id=telegram_user_id)
            db.add(db_prefs)

        for key, value in fields.items():
            setattr(db_prefs, key, value)
        db_prefs.updated_at = datetime.utcnow()

        db.commit()
        db.refresh(db_prefs)
        return db_prefs


class ApiUsageLogCRUD:
    """CRUD operations for ApiUsageLog model."""

    @staticmethod
    def create(db: Session, api_source: str, endpoint: str, request_params: Optional[Dict[str, Any]],
               response_status: Optional[int], execution_time_ms: int, credits_used: int = 1) -> ApiUsageLog:
        """Record one external API call."""
        db_log = ApiUsageLog(
            api_source=api_source,
            endpoint=endpoint,
            request_params=request_params,
            response_status=response_status,
            execution_time_ms=execution_time_ms,
            credits_used=credits_used
        )
        db.add(db_log)
        db.commit()
        return db_log
