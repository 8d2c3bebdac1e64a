"""Data models for the realty portal."""

from .base import Base
from .property_models import (
    PropertyType, Purpose, SourceType, DataSource, PropertyListing, ScrapedProperty,
    ExtractedProperty, PropertyListingSchema, DataSourceSchema, DataSourceCreate
)
from .scraper_models import (
    ScrapingStatus, ScrapingJob, ApiUsageLog, ScrapingJobSchema, ScrapingJobUpdate
)
from .news_models import (
    NewsSource, NewsArticle, ChannelPost, DistrictReview, NewsItem, NewsArticleSchema
)
from .bot_models import SearchHistory, UserPreferences

__all__ = [
    "Base",
    "PropertyType",
    "Purpose",
    "SourceType",
    "DataSource",
    "PropertyListing",
    "ScrapedProperty",
    "ExtractedProperty",
    "PropertyListingSchema",
    "DataSourceSchema",
    "DataSourceCreate",
    "ScrapingStatus",
    "ScrapingJob",
    "ApiUsageLog",
    "ScrapingJobSchema",
    "ScrapingJobUpdate",
    "NewsSource",
    "NewsArticle",
    "ChannelPost",
    "DistrictReview",
    "NewsItem",
    "NewsArticleSchema",
    "SearchHistory",
    "UserPreferences",
]
