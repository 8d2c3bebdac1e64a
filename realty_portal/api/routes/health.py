"""Health check routes."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session
from pydantic import BaseModel
from datetime import datetime
from redis import Redis
import logging

from ... import __version__
from ...database.connection import get_db
from ...config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthCheck(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    version: str
    database: str
    environment: str


class DetailedHealthCheck(BaseModel):
    """Detailed health check response model."""
    status: str
    timestamp: datetime
    version: str
    environment: str
    services: dict


@router.get("/health", response_model=HealthCheck)
def health_check(db: Session = Depends(get_db)):
    """Basic health check endpoint.

    Args:
        db: Database session

    Returns:
        HealthCheck: Health check response
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "unhealthy"

    return HealthCheck(
        status="healthy" if db_status == "healthy" else "unhealthy",
        timestamp=datetime.utcnow(),
        version=__version__,
        database=db_status,
        environment=settings.environment
    )


@router.get("/health/detailed", response_model=DetailedHealthCheck)
def detailed_health_check(db: Session = Depends(get_db)):
    """Database and Redis (Celery broker) status."""
    services = {}

    try:
        db.execute(text("SELECT 1"))
        services["database"] = {"status": "healthy"}
    except Exception as e:
        services["database"] = {"status": "unhealthy", "error": str(e)}

    try:
        redis_client = Redis(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
            password=settings.redis.password,
            socket_timeout=5
        )
        redis_client.ping()
        services["redis"] = {"status": "healthy"}
    except Exception as e:
        services["redis"] = {"status": "unhealthy", "error": str(e)}

    overall_status = "healthy"
    if any(service["status"] != "healthy" for service in services.values()):
        overall_status = "degraded"

    return DetailedHealthCheck(
        status=overall_status,
        timestamp=datetime.utcnow(),
        version=__version__,
        environment=settings.environment,
        services=services
    )


@router.get("/ping")
async def ping():
    return {"message": "pong"}
