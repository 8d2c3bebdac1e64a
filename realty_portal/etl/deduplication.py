"""Deduplication engine for identifying already ingested records."""

import logging
from typing import Any, List, Tuple
from sqlalchemy.orm import Session

from ..database.crud import PropertyListingCRUD, ScrapedPropertyCRUD, NewsArticleCRUD

logger = logging.getLogger(__name__)


class DeduplicationEngine:
    """Detects duplicates by stable external identifier.

    Listings are keyed by ``external_id`` and articles by their original URL.
    Content is never compared, so an edited listing with the same identifier
    counts as a duplicate.
    """

    LISTINGS = "property_listings"
    SCRAPED = "scraped_properties"
    ARTICLES = "news_articles"

    def __init__(self, db_session: Session):
        """Initialize the deduplication engine.

        Args:
            db_session: Database session for querying existing records
        """
        self.db = db_session
        self._lookups = {
            self.LISTINGS: lambda key: PropertyListingCRUD.get_by_external_id(self.db, key),
            self.SCRAPED: lambda key: ScrapedPropertyCRUD.get_by_external_id(self.db, key),
            self.ARTICLES: lambda key: NewsArticleCRUD.get_by_url(self.db, key),
        }

    def is_duplicate(self, external_id: str, table: str = LISTINGS) -> bool:
        """Check if a record with this identifier already exists.

        Args:
            external_id: External ID, or original URL for articles
            table: Table to check

        Returns:
            bool: True if the record is already stored
        """
        if not external_id:
            return False

        lookup = self._lookups.get(table)
        if lookup is None:
            raise ValueError(f"Unknown table for deduplication: {table}")

        exists = lookup(external_id) is not None
        if exists:
            logger.debug(f"Found exact duplicate in {table}: {external_id}")
        return exists

    def find_duplicates_in_batch(self, records: List[Any],
                                 key: str = 'external_id') -> Tuple[List[Any], int]:
        """Drop records that repeat an identifier seen earlier in the batch.

        Args:
            records: Row dicts or extracted records to check
            key: Field holding the identifier

        Returns:
            Tuple[List[Any], int]: (unique_records, duplicates_removed)
        """
        seen = set()
        unique = []
        duplicates = 0

        for record in records:
            identifier = record.get(key) if isinstance(record, dict) else getattr(record, key, None)
            if identifier and identifier in seen:
                duplicates += 1
                continue
            if identifier:
                seen.add(identifier)
            unique.append(record)

        return unique, duplicates
