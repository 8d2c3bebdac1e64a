"""Property data models for listing ingestion."""

from datetime import datetime
from typing import Optional, List, Dict, Any
from enum import Enum
from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from pydantic import BaseModel, Field

from .base import Base


class PropertyType(str, Enum):
    """Property type enumeration."""
    APARTMENT = "Apartment"
    VILLA = "Villa"
    STUDIO = "Studio"
    TOWNHOUSE = "Townhouse"
    PENTHOUSE = "Penthouse"


class Purpose(str, Enum):
    """Listing purpose as stored in property_listings."""
    FOR_RENT = "for-rent"
    FOR_SALE = "for-sale"


class SourceType(str, Enum):
    """Data source type enumeration."""
    WEBSITE = "website"
    TELEGRAM = "telegram"


# SQLAlchemy Models

class DataSource(Base):
    """A website or Telegram channel that is scraped on a schedule."""

    __tablename__ = "data_sources"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    source_type = Column(String(50), nullable=False, default=SourceType.WEBSITE.value)
    url = Column(String(500), nullable=True)
    telegram_username = Column(String(200), nullable=True)
    is_active = Column(Boolean, default=True)
    scraping_frequency = Column(Integer, default=60)  # minutes
    last_scraped_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    jobs = relationship("ScrapingJob", back_populates="source")


class PropertyListing(Base):
    """Canonical listing shown to bot users and the portal."""

    __tablename__ = "property_listings"

    id = Column(Integer, primary_key=True, index=True)
    external_id = Column(String(500), unique=True, nullable=False, index=True)
    source = Column(String(100), nullable=True)
    source_name = Column(String(200), nullable=True)
    source_category = Column(String(100), nullable=True)

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    price_currency = Column(String(10), default="AED")
    property_type = Column(String(50), nullable=True)
    purpose = Column(String(20), nullable=True)
    housing_status = Column(String(50), nullable=True)

    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    area_sqft = Column(Float, nullable=True)

    location_area = Column(String(200), nullable=True)
    location_city = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)

    images = Column(JSON, nullable=True)
    agent_name = Column(String(200), nullable=True)
    agent_phone = Column(String(50), nullable=True)
    raw_data = Column(JSON, nullable=True)

    last_verified = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ScrapedProperty(Base):
    """Property extracted from a data source before curation."""

    __tablename__ = "scraped_properties"

    id = Column(Integer, primary_key=True, index=True)
    source_id = Column(Integer, ForeignKey("data_sources.id"), nullable=True)
    external_id = Column(String(500), unique=True, nullable=True, index=True)

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=True)
    price_currency = Column(String(10), default="AED")
    property_type = Column(String(50), nullable=True)
    purpose = Column(String(20), nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    area_sqft = Column(Float, nullable=True)
    location_area = Column(String(200), nullable=True)
    location_city = Column(String(100), default="Dubai")
    images = Column(JSON, nullable=True)
    agent_name = Column(String(200), nullable=True)
    agent_phone = Column(String(50), nullable=True)
    raw_content = Column(Text, nullable=True)

    scraped_at = Column(DateTime, default=datetime.utcnow)


# Pydantic Models

class ExtractedProperty(BaseModel):
    """Property record produced by a scraper or the text extractor."""

    title: str
    description: Optional[str] = None
    price: Optional[float] = None
    price_currency: str = "AED"
    property_type: Optional[str] = None
    purpose: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area_sqft: Optional[float] = None
    location_area: Optional[str] = None
    location_city: Optional[str] = None
    district: Optional[str] = None
    agent_name: Optional[str] = None
    agent_phone: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    external_id: Optional[str] = None
    source_url: Optional[str] = None
    raw_content: Optional[str] = None


class PropertyListingSchema(BaseModel):
    """Property listing response schema."""

    id: int
    external_id: str
    source: Optional[str] = None
    title: str
    description: Optional[str] = None
    price: Optional[float] = None
    price_currency: Optional[str] = None
    property_type: Optional[str] = None
    purpose: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area_sqft: Optional[float] = None
    location_area: Optional[str] = None
    location_city: Optional[str] = None
    district: Optional[str] = None
    images: Optional[List[str]] = None
    agent_name: Optional[str] = None
    agent_phone: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DataSourceSchema(BaseModel):
    """Data source response schema."""

    id: int
    name: str
    source_type: str
    url: Optional[str] = None
    telegram_username: Optional[str] = None
    is_active: bool
    scraping_frequency: Optional[int] = None
    last_scraped_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DataSourceCreate(BaseModel):
    """Schema for registering a data source."""

    name: str
    source_type: SourceType = SourceType.WEBSITE
    url: Optional[str] = None
    telegram_username: Optional[str] = None
    is_active: bool = True
    scraping_frequency: int = 60

    def to_row(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["source_type"] = self.source_type.value
        return data
