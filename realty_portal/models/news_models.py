"""News and channel content models."""

from datetime import datetime
from typing import Optional, List
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, JSON, ForeignKey, Float
from pydantic import BaseModel

from .base import Base


class NewsSource(Base):
    """RSS feed the news pipeline reads from."""

    __tablename__ = "news_sources"

    id = Column(Integer, primary_key=True, index=True)
    source_name = Column(String(200), unique=True, nullable=False)
    source_url = Column(String(500), nullable=False)
    is_active = Column(Boolean, default=True)
    articles_count = Column(Integer, default=0)
    last_scraped_at = Column(DateTime, nullable=True)


class NewsArticle(Base):
    """Fetched article with its translation and publishing state."""

    __tablename__ = "news_articles"

    id = Column(Integer, primary_key=True, index=True)
    source_id = Column(Integer, ForeignKey("news_sources.id"), nullable=True)

    original_title = Column(String(500), nullable=False)
    original_content = Column(Text, nullable=True)
    original_url = Column(String(500), unique=True, nullable=False, index=True)

    translated_title = Column(String(500), nullable=True)
    translated_content = Column(Text, nullable=True)

    published_date = Column(DateTime, nullable=True)
    relevance_score = Column(Integer, default=50)
    images = Column(JSON, nullable=True)

    is_processed = Column(Boolean, default=False)
    is_posted = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class ChannelPost(Base):
    """Generated post for the public channel."""

    __tablename__ = "channel_posts"

    id = Column(Integer, primary_key=True, index=True)
    post_type = Column(String(50), nullable=False)
    title = Column(String(500), nullable=True)
    content = Column(Text, nullable=False)
    status = Column(String(50), default="draft")
    ai_generated = Column(Boolean, default=True)
    published_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class DistrictReview(Base):
    """Editorial facts about a district, used for district posts."""

    __tablename__ = "district_reviews"

    id = Column(Integer, primary_key=True, index=True)
    district = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    avg_rent_1br = Column(Float, nullable=True)
    avg_rent_2br = Column(Float, nullable=True)
    infrastructure_score = Column(Integer, nullable=True)
    expat_friendly_score = Column(Integer, nullable=True)
    nightlife_score = Column(Integer, nullable=True)
    family_score = Column(Integer, nullable=True)


# Pydantic Models

class NewsItem(BaseModel):
    """Entry parsed from an RSS feed."""

    title: str
    link: str
    description: str = ""
    published: Optional[datetime] = None
    images: List[str] = []


class NewsArticleSchema(BaseModel):
    """News article response schema."""

    id: int
    original_title: str
    original_url: str
    translated_title: Optional[str] = None
    translated_content: Optional[str] = None
    published_date: Optional[datetime] = None
    relevance_score: Optional[int] = None
    is_processed: Optional[bool] = None
    is_posted: Optional[bool] = None

    class Config:
        from_attributes = True
