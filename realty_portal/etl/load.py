"""Load module for persisting and exporting property data."""

from typing import Dict, Any, Optional
import logging
from pathlib import Path
from datetime import datetime
import pandas as pd
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..database.crud import PropertyListingCRUD, ScrapedPropertyCRUD
from ..models.property_models import PropertyListing, ScrapedProperty

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    'id', 'external_id', 'source', 'title', 'price', 'price_currency', 'property_type',
    'purpose', 'bedrooms', 'bathrooms', 'area_sqft', 'location_area', 'location_city',
    'district', 'agent_name', 'agent_phone', 'created_at'
]


class PropertyLoader:
    """Saves normalized properties to the database and exports them to files."""

    def __init__(self, db_session: Session, output_dir: Optional[str] = None):
        """Initialize the loader.

        Args:
            db_session: Database session used for inserts
            output_dir: Directory for export files
        """
        self.db = db_session
        self.output_dir = Path(output_dir or settings.etl.output_dir)

    def save_listing(self, row: Dict[str, Any]) -> Optional[PropertyListing]:
        """Insert one property_listings row.

        Returns:
            Optional[PropertyListing]: The new row, or None if the external ID already exists
        """
        try:
            return PropertyListingCRUD.create(self.db, row)
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Listing {row.get('external_id')} inserted concurrently, treating as duplicate")
            return None

    def save_scraped(self, row: Dict[str, Any]) -> Optional[ScrapedProperty]:
        """Insert one scraped_properties row.

        Returns:
            Optional[ScrapedProperty]: The new row, or None if the external ID already exists
        """
        try:
            return ScrapedPropertyCRUD.create(self.db, row)
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Scraped property {row.get('external_id')} inserted concurrently, treating as duplicate")
            return None

    def _listing_frame(self) -> pd.DataFrame:
        listings = PropertyListingCRUD.get_all(self.db)
        records = [{column: getattr(listing, column) for column in EXPORT_COLUMNS} for listing in listings]
        return pd.DataFrame(records, columns=EXPORT_COLUMNS)

    def _output_path(self, filename: Optional[str], extension: str) -> Path:
        if not filename:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename = f'property_listings_{timestamp}{extension}'

        if not filename.endswith(extension):
            filename += extension

        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir / filename

    def export_to_csv(self, filename: Optional[str] = None) -> str:
        """Export all listings to a CSV file.

        Args:
            filename: Optional filename (default: timestamp-based)

        Returns:
            str: Path to the saved file
        """
        output_path = self._output_path(filename, '.csv')
        df = self._listing_frame()
        df.to_csv(output_path, index=False, encoding=settings.etl.csv_encoding)

        logger.info(f"Saved {len(df)} listings to {output_path}")
        return str(output_path)

    def export_to_json(self, filename: Optional[str] = None) -> str:
        """Export all listings to a JSON file.

        Args:
            filename: Optional filename (default: timestamp-based)

        Returns:
            str: Path to the saved file
        """
        output_path = self._output_path(filename, '.json')
        df = self._listing_frame()
        df.to_json(output_path, orient='records', date_format='iso', force_ascii=False)

        logger.info(f"Saved {len(df)} listings to {output_path}")
        return str(output_path)
