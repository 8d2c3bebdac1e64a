"""Scraping routes: data sources, listing portals and batdongsan.com.vn."""

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..dependencies import get_pipeline
from ..errors import error_response
from ...etl.pipeline import IngestionPipeline
from ...models.property_models import DataSourceCreate

logger = logging.getLogger(__name__)

router = APIRouter()


class PropertyScraperRequest(BaseModel):
    action: str = "scrape"
    source_id: Optional[int] = None
    source: Optional[DataSourceCreate] = None
    limit: int = Field(default=50, ge=1, le=500)


class WebScraperRequest(BaseModel):
    sources: Optional[List[str]] = None
    location: Optional[str] = None
    property_type: Optional[str] = None
    purpose: Optional[str] = None
    limit: int = Field(default=10, ge=1, le=50)


class BatdongsanRequest(BaseModel):
    action: str = "auto"
    query: Optional[str] = None
    url: Optional[str] = None


@router.post("/property-scraper")
def property_scraper(request: PropertyScraperRequest, pipeline: IngestionPipeline = Depends(get_pipeline)):
    """Run configured data sources or list sources and jobs.

    Args:
        request: ``scrape``, ``add_source``, ``get_sources`` or ``get_jobs``
        pipeline: Ingestion pipeline

    Returns:
        dict: Action result
    """
    if request.action == "scrape":
        return pipeline.run_sources(request.source_id)

    if request.action == "add_source":
        if request.source is None:
            return error_response(400, "source is required")
        try:
            return {"success": True, "source": pipeline.add_source(request.source)}
        except ValueError as e:
            return error_response(400, str(e))

    if request.action == "get_sources":
        return {"success": True, "sources": pipeline.get_sources()}

    if request.action == "get_jobs":
        return {"success": True, "jobs": pipeline.get_jobs(request.limit)}

    return error_response(400, f"Unknown action: {request.action}")


@router.post("/web-scraper")
def web_scraper(request: WebScraperRequest, pipeline: IngestionPipeline = Depends(get_pipeline)):
    """Scrape PropertyFinder and Dubizzle search results into property listings."""
    logger.info(f"Web scraper request: {request.model_dump()}")
    return pipeline.run_portals(
        sources=request.sources,
        location=request.location,
        property_type=request.property_type,
        purpose=request.purpose,
        limit=request.limit
    )


@router.post("/batdongsan")
def batdongsan(request: BatdongsanRequest, pipeline: IngestionPipeline = Depends(get_pipeline)):
    try:
        return pipeline.run_batdongsan(request.action, query=request.query, url=request.url)
    except ValueError as e:
        return error_response(400, str(e))
