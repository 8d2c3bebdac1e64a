"""Database connection and session management."""

from typing import Generator
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
import logging

from ..config import settings
from ..models.base import Base

logger = logging.getLogger(__name__)


def _create_engine(database_url: str):
    """Create the engine, sharing one connection for in-memory sqlite."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=settings.api.debug
        )

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=300,
        echo=settings.api.debug  # Enable SQL logging in debug mode
    )


# Create database engine
engine = _create_engine(settings.database.database_url)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Get database session.

    Yields:
        Session: Database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Initialize database with all tables."""
    try:
        # Import all models to ensure they are registered
        from .. import models  # noqa: F401

        Base.metadata.create_all(bind=engine)
        logger.info("Database initialized successfully")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


def drop_all_tables() -> None:
    """Drop all tables. Use with caution!"""
    from .. import models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    logger.warning("All database tables dropped")


def check_db_connection() -> bool:
    """Check if database connection is working.

    Returns:
        bool: True if connection is working, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
