"""Telegram bot user state models."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON, BigInteger

from .base import Base


class SearchHistory(Base):
    """Search query issued by a bot user."""

    __tablename__ = "search_history"

    id = Column(Integer, primary_key=True, index=True)
    telegram_user_id = Column(BigInteger, nullable=False, index=True)
    search_query = Column(String(500), nullable=False)
    results_count = Column(Integer, default=0)
    search_filters = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class UserPreferences(Base):
    """Per-user defaults for bot searches and notifications."""

    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    telegram_user_id = Column(BigInteger, unique=True, nullable=False)
    purpose = Column(String(20), default="for-rent")
    preferred_areas = Column(JSON, nullable=True)
    language = Column(String(10), default="en")
    notifications_enabled = Column(Boolean, default=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
