"""Scraper-related data models."""

from datetime import datetime
from typing import Optional, Dict, Any
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from pydantic import BaseModel

from .base import Base


class ScrapingStatus(str, Enum):
    """Scraping job status enumeration."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ScrapingJob(Base):
    """One scraping run against a single data source."""

    __tablename__ = "scraping_jobs"

    id = Column(Integer, primary_key=True, index=True)
    source_id = Column(Integer, ForeignKey("data_sources.id"), nullable=True)
    status = Column(String(50), nullable=False, default=ScrapingStatus.PENDING.value)

    # Progress tracking
    properties_found = Column(Integer, default=0)
    properties_processed = Column(Integer, default=0)

    error_message = Column(Text, nullable=True)
    job_metadata = Column("metadata", JSON, nullable=True)

    # Timing
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    source = relationship("DataSource", back_populates="jobs")


class ApiUsageLog(Base):
    """External API call record, used for cost tracking."""

    __tablename__ = "api_usage_logs"

    id = Column(Integer, primary_key=True, index=True)
    api_source = Column(String(100), nullable=False)
    endpoint = Column(String(200), nullable=True)
    request_params = Column(JSON, nullable=True)
    response_status = Column(Integer, nullable=True)
    execution_time_ms = Column(Integer, nullable=True)
    credits_used = Column(Integer, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)


# Pydantic Models

class ScrapingJobSchema(BaseModel):
    """Scraping job response schema."""

    id: int
    source_id: Optional[int] = None
    status: str
    properties_found: Optional[int] = 0
    properties_processed: Optional[int] = 0
    error_message: Optional[str] = None
    job_metadata: Optional[Dict[str, Any]] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ScrapingJobUpdate(BaseModel):
    """Schema for updating scraping jobs."""

    status: Optional[ScrapingStatus] = None
    properties_found: Optional[int] = None
    properties_processed: Optional[int] = None
    error_message: Optional[str] = None
    job_metadata: Optional[Dict[str, Any]] = None
