"""Property routes: text parsing, descriptions, search and export."""

from pathlib import Path
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..dependencies import get_pipeline, get_enricher, get_loader
from ..errors import error_response
from ...database.connection import get_db
from ...database.crud import PropertyListingCRUD
from ...enrichment.enricher import Enricher
from ...etl.load import PropertyLoader
from ...etl.pipeline import IngestionPipeline
from ...models.property_models import PropertyListingSchema

logger = logging.getLogger(__name__)

router = APIRouter()

EXPORT_MEDIA_TYPES = {
    "csv": "text/csv",
    "json": "application/json",
}


class ParseRequest(BaseModel):
    text: str = Field(..., min_length=1)
    source: str = "manual"
    save: bool = False


class PropertyInput(BaseModel):
    """Listing fields used to write a description."""
    title: str
    property_type: Optional[str] = None
    purpose: Optional[str] = None
    price: Optional[float] = None
    price_currency: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area_sqft: Optional[float] = None
    location_area: Optional[str] = None
    district: Optional[str] = None


class DescriptionRequest(BaseModel):
    property: PropertyInput


@router.post("/parse")
def parse_property(request: ParseRequest, pipeline: IngestionPipeline = Depends(get_pipeline)):
    """Parse pasted listing text, optionally saving it as a property listing."""
    result = pipeline.import_text(request.text, source=request.source, save=request.save)
    if not result["success"]:
        return error_response(422, result["error"])
    return result


@router.post("/description")
def generate_description(request: DescriptionRequest, enricher: Enricher = Depends(get_enricher)):
    result = enricher.generate_description(request.property.model_dump())
    if not result["description"]:
        return error_response(500, "Description generation failed")
    return {"success": True, **result}


@router.get("/search")
def search_properties(
    q: Optional[str] = None,
    purpose: Optional[str] = Query(default=None, pattern="^for-(rent|sale)$"),
    limit: int = Query(default=5, ge=1, le=50),
    db: Session = Depends(get_db)
):
    """Search listings by free text terms.

    Args:
        q: Free text query matched against title, area and district
        purpose: Optional ``for-rent`` or ``for-sale`` filter
        limit: Maximum number of results
        db: Database session

    Returns:
        dict: Matching listings, newest first
    """
    listings = PropertyListingCRUD.search(db, q, purpose=purpose, limit=limit)
    return {
        "success": True,
        "count": len(listings),
        "properties": [PropertyListingSchema.model_validate(listing).model_dump(mode="json") for listing in listings],
    }


@router.get("/export")
def export_properties(format: str = "csv", loader: PropertyLoader = Depends(get_loader)):
    """Export all listings as a CSV or JSON file."""
    if format not in EXPORT_MEDIA_TYPES:
        return error_response(400, f"Unsupported export format: {format}")

    path = loader.export_to_csv() if format == "csv" else loader.export_to_json()
    return FileResponse(path, media_type=EXPORT_MEDIA_TYPES[format], filename=Path(path).name)
