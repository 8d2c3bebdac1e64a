"""Database package."""

from .connection import get_db, init_db, SessionLocal
from .crud import (
    DataSourceCRUD, ScrapingJobCRUD, PropertyListingCRUD, ScrapedPropertyCRUD,
    NewsSourceCRUD, NewsArticleCRUD, ChannelPostCRUD, DistrictReviewCRUD,
    SearchHistoryCRUD, UserPreferencesCRUD, ApiUsageLogCRUD
)

__all__ = [
    "get_db",
    "init_db",
    "SessionLocal",
    "DataSourceCRUD",
    "ScrapingJobCRUD",
    "PropertyListingCRUD",
    "ScrapedPropertyCRUD",
    "NewsSourceCRUD",
    "NewsArticleCRUD",
    "ChannelPostCRUD",
    "DistrictReviewCRUD",
    "SearchHistoryCRUD",
    "UserPreferencesCRUD",
    "ApiUsageLogCRUD"
]
