"""Ingestion orchestrator: fetch, extract, dedupe, enrich, persist."""

import hashlib
import logging
import time
from typing import Dict, Any, List, Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..database.crud import DataSourceCRUD, ScrapingJobCRUD
from ..enrichment.ai_client import AIClient
from ..enrichment.enricher import Enricher
from ..models.property_models import (
    DataSource, DataSourceCreate, DataSourceSchema, ExtractedProperty, PropertyListing, SourceType
)
from ..models.scraper_models import ScrapingStatus, ScrapingJobSchema, ScrapingJobUpdate
from ..monitoring.logger import ScrapingLogger
from ..scrapers.base_scraper import BaseScraper, ScrapingError
from ..scrapers.batdongsan_scraper import BatdongsanScraper, DISTRICT_URLS
from ..scrapers.dubizzle_scraper import DubizzleScraper
from ..scrapers.propertyfinder_scraper import PropertyFinderScraper
from ..scrapers.telegram_channel_scraper import TelegramChannelScraper
from ..scrapers.website_scraper import WebsiteScraper
from .data_validator import DataValidator
from .deduplication import DeduplicationEngine
from .extractor import PropertyExtractor
from .load import PropertyLoader
from .transform import PropertyTransformer

logger = logging.getLogger(__name__)

PORTAL_SCRAPERS = {
    'propertyfinder': PropertyFinderScraper,
    'dubizzle': DubizzleScraper,
}

AUTO_DISTRICT_LIMIT = 5


class IngestionPipeline:
    """Runs property ingestion for data sources, portals and pasted text.

    Failures are isolated per source: a source whose fetch or persistence
    fails marks its own job as failed and the run moves on.
    """

    def __init__(self, db: Session, enricher: Optional[Enricher] = None,
                 scrapers: Optional[Dict[str, BaseScraper]] = None):
        """Initialize the pipeline.

        Args:
            db: Database session
            enricher: Optional enricher, built from settings when omitted
            scrapers: Optional scraper overrides keyed by source type or portal name
        """
        self.db = db
        self.enricher = enricher or Enricher(AIClient(db=db))
        self.extractor = PropertyExtractor()
        self.transformer = PropertyTransformer()
        self.validator = DataValidator()
        self.dedup = DeduplicationEngine(db)
        self.loader = PropertyLoader(db)
        self._scrapers: Dict[str, BaseScraper] = dict(scrapers or {})

    def _scraper(self, key: str) -> BaseScraper:
        if key not in self._scrapers:
            if key == SourceType.WEBSITE.value:
                self._scrapers[key] = WebsiteScraper(extractor=self.extractor)
            elif key == SourceType.TELEGRAM.value:
                self._scrapers[key] = TelegramChannelScraper(extractor=self.extractor)
            elif key in PORTAL_SCRAPERS:
                self._scrapers[key] = PORTAL_SCRAPERS[key]()
            elif key == 'batdongsan':
                self._scrapers[key] = BatdongsanScraper(parser=self.parse_listing_text)
            else:
                raise ScrapingError(f"No scraper for '{key}'")
        return self._scrapers[key]

    # Data sources

    def run_sources(self, source_id: Optional[int] = None, enrich: Optional[bool] = None) -> Dict[str, Any]:
        """Scrape every active data source, or only ``source_id``.

        Args:
            source_id: Optional single source to run
            enrich: Summarize descriptions via the AI gateway, defaults to settings

        Returns:
            Dict[str, Any]: Per-source results and totals
        """
        if enrich is None:
            enrich = settings.scraper.enrich_listings

        sources = DataSourceCRUD.get_active(self.db, source_id)
        logger.info(f"Running {len(sources)} data sources")

        results = [self._run_source(source, enrich) for source in sources]

        return {
            'success': True,
            'sources_processed': len(results),
            'total_found': sum(result['properties_found'] for result in results),
            'total_saved': sum(result['properties_saved'] for result in results),
            'results': results,
        }

    def _run_source(self, source: DataSource, enrich: bool) -> Dict[str, Any]:
        job = ScrapingJobCRUD.create(self.db, source.id, status=ScrapingStatus.RUNNING,
                                     metadata={'source_type': source.source_type})
        scraping_logger = ScrapingLogger(source.name, job.id)
        start_time = time.time()
        found = 0
        saved = 0

        target = source.url if source.source_type == SourceType.WEBSITE.value else source.telegram_username
        scraping_logger.log_scrape_start(source.source_type, target)

        try:
            if not target:
                raise ScrapingError(f"Source '{source.name}' has no URL or channel configured")

            records = self._scraper(source.source_type).scrape(target)
            found = len(records)

            records, repeated = self.dedup.find_duplicates_in_batch(records)
            if repeated:
                logger.info(f"Dropped {repeated} repeated records from {source.name}")

            for record in records:
                if self._save_scraped(record, source.id, enrich, scraping_logger):
                    saved += 1

            ScrapingJobCRUD.update(self.db, job.id, ScrapingJobUpdate(
                status=ScrapingStatus.COMPLETED,
                properties_found=found,
                properties_processed=saved
            ))
            scraping_logger.log_scrape_complete(found, saved, time.time() - start_time)
            status, error = ScrapingStatus.COMPLETED, None

        except Exception as e:
            # One failing source must not stop the others
            self.db.rollback()
            scraping_logger.log_error(e, {'source_id': source.id})
            ScrapingJobCRUD.update(self.db, job.id, ScrapingJobUpdate(
                status=ScrapingStatus.FAILED,
                properties_found=found,
                properties_processed=saved,
                error_message=str(e)
            ))
            status, error = ScrapingStatus.FAILED, str(e)

        DataSourceCRUD.mark_scraped(self.db, source.id)

        return {
            'source_id': source.id,
            'source_name': source.name,
            'job_id': job.id,
            'status': status.value,
            'properties_found': found,
            'properties_saved': saved,
            'error': error,
        }

    def _save_scraped(self, record: ExtractedProperty, source_id: int, enrich: bool,
                      scraping_logger: ScrapingLogger) -> bool:
        row = self.transformer.to_scraped_row(record, source_id)

        if not self._is_valid(row):
            scraping_logger.log_property_processed(row.get('external_id'), False, 'invalid')
            return False

        if self.dedup.is_duplicate(row['external_id'], DeduplicationEngine.SCRAPED):
            scraping_logger.log_property_processed(row['external_id'], False, 'duplicate')
            return False

        if enrich and row.get('description'):
            row['description'] = self.enricher.summarize(row['description'])

        saved = self.loader.save_scraped(row) is not None
        scraping_logger.log_property_processed(row['external_id'], saved, None if saved else 'duplicate')
        return saved

    def add_source(self, source: DataSourceCreate) -> Dict[str, Any]:
        """Register a website or Telegram channel for scheduled scraping."""
        if source.source_type == SourceType.WEBSITE and not source.url:
            raise ValueError("Website sources need a url")
        if source.source_type == SourceType.TELEGRAM and not source.telegram_username:
            raise ValueError("Telegram sources need a telegram_username")

        created = DataSourceCRUD.create(self.db, source.to_row())
        logger.info(f"Registered data source {created.id}: {created.name}")
        return DataSourceSchema.model_validate(created).model_dump(mode='json')

    def get_sources(self) -> List[Dict[str, Any]]:
        return [
            DataSourceSchema.model_validate(source).model_dump(mode='json')
            for source in DataSourceCRUD.get_all(self.db)
        ]

    def get_jobs(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Latest scraping jobs with their source names."""
        jobs = []
        for job in ScrapingJobCRUD.get_recent(self.db, limit):
            data = ScrapingJobSchema.model_validate(job).model_dump(mode='json')
            data['source_name'] = job.source.name if job.source else None
            jobs.append(data)
        return jobs

    # Listing portals

    def run_portals(self, sources: Optional[List[str]] = None, location: Optional[str] = None,
                    property_type: Optional[str] = None, purpose: Optional[str] = None,
                    limit: int = 10) -> Dict[str, Any]:
        """Scrape portal search results into property_listings.

        Returns:
            Dict[str, Any]: totalScraped, totalSaved and per-portal results
        """
        sources = sources or list(PORTAL_SCRAPERS)
        criteria = {'location': location, 'property_type': property_type, 'purpose': purpose, 'limit': limit}

        total_scraped = 0
        total_saved = 0
        results: Dict[str, Any] = {}

        for name in sources:
            if name not in PORTAL_SCRAPERS:
                results[name] = {'success': False, 'error': f"Unknown source: {name}"}
                continue

            try:
                records = self._scraper(name).scrape(criteria)
            except ScrapingError as e:
                logger.error(f"Error scraping {name}: {e}")
                results[name] = {'success': False, 'error': str(e)}
                continue

            unique, _ = self.dedup.find_duplicates_in_batch(records)
            saved = sum(
                1 for record in unique
                if self.save_listing(record, source=name, raw_data=record.model_dump(mode='json'))
            )
            total_scraped += len(records)
            total_saved += saved
            results[name] = {'success': True, 'scraped': len(records), 'saved': saved}

        return {
            'success': True,
            'message': f"Successfully scraped {total_scraped} properties, saved {total_saved} to database",
            'totalScraped': total_scraped,
            'totalSaved': total_saved,
            'sources': list(results),
            'results': results,
        }

    # batdongsan.com.vn

    def parse_listing_text(self, text: str, source: str) -> Optional[ExtractedProperty]:
        """Parse listing text with the AI extractor, falling back to regex rules."""
        record = self.enricher.extract_property(text, source)
        if record is None:
            record = self.extractor.extract(text)
        return record

    def run_batdongsan(self, action: str = 'auto', query: Optional[str] = None,
                       url: Optional[str] = None) -> Dict[str, Any]:
        """Run a batdongsan action: ``single``, ``search`` or ``auto``."""
        scraper = self._scraper('batdongsan')

        if action == 'single':
            if not url:
                raise ValueError("url is required for single")
            record = scraper.scrape_listing(url)
            listing = self._save_batdongsan(record) if record else None
            return {
                'success': listing is not None,
                'imported': 1 if listing else 0,
                'property': record.model_dump(mode='json') if record else None,
                'id': listing.id if listing else None,
                'error': None if listing else 'Listing could not be parsed or already exists',
            }

        if action == 'search':
            links = scraper.search_links(query or '')
            imported = self._import_batdongsan_links(scraper, links)
            return {'success': True, 'found': len(links), 'imported': imported}

        if action == 'auto':
            results = []
            for district in DISTRICT_URLS:
                try:
                    links = scraper.district_links(district)[:AUTO_DISTRICT_LIMIT]
                except ScrapingError as e:
                    logger.error(f"[{district}] district page failed: {e}")
                    results.append({'district': district, 'imported': 0, 'error': str(e)})
                    continue
                imported = self._import_batdongsan_links(scraper, links)
                logger.info(f"[{district}] Imported {imported} properties")
                results.append({'district': district, 'imported': imported})

            return {
                'success': True,
                'imported': sum(result['imported'] for result in results),
                'results': results,
            }

        raise ValueError(f"Unknown action: {action}")

    def _import_batdongsan_links(self, scraper: BatdongsanScraper, links: List[str]) -> int:
        imported = 0
        for link in links:
            if self.dedup.is_duplicate(link):
                continue
            try:
                record = scraper.scrape_listing(link)
            except ScrapingError as e:
                logger.warning(f"Skipping {link}: {e}")
                continue
            if record and self._save_batdongsan(record):
                imported += 1
        return imported

    def _save_batdongsan(self, record: ExtractedProperty) -> Optional[PropertyListing]:
        return self.save_listing(record, source='batdongsan', source_category='scraped')

    # Free text

    def import_text(self, text: str, source: str = 'manual', save: bool = False) -> Dict[str, Any]:
        """Parse pasted listing text and optionally store it.

        Returns:
            Dict[str, Any]: The parsed property and, when saved, its ID
        """
        record = self.parse_listing_text(text, source)
        if record is None:
            return {'success': False, 'error': 'Could not extract property details from text'}

        if not record.external_id:
            record.external_id = f"import_{hashlib.sha1(text.encode('utf-8')).hexdigest()[:16]}"
        if not record.purpose:
            record.purpose = 'for-rent'
        record.raw_content = record.raw_content or text

        result: Dict[str, Any] = {'success': True, 'property': record.model_dump(mode='json'), 'saved': False}

        if save:
            listing = self.save_listing(record, source=source, source_category='imported')
            result['saved'] = listing is not None
            result['id'] = listing.id if listing else None

        return result

    def import_chat_message(self, text: str, chat_id: int, message_id: int,
                            chat_title: Optional[str] = None) -> Optional[PropertyListing]:
        """Store a listing posted in a monitored Telegram chat."""
        external_id = f"tg_{chat_id}_{message_id}"
        if self.dedup.is_duplicate(external_id):
            logger.info(f"Chat message {external_id} already imported")
            return None

        record = self.parse_listing_text(text, f"Telegram chat {chat_title or chat_id}")
        if record is None:
            return None

        record.external_id = external_id
        record.purpose = record.purpose or 'for-rent'
        record.raw_content = text
        return self.save_listing(record, source='telegram', source_name=chat_title,
                                 source_category='telegram_import')

    # Shared persistence

    def save_listing(self, record: ExtractedProperty, source: str, source_name: Optional[str] = None,
                     source_category: Optional[str] = None,
                     raw_data: Optional[Dict[str, Any]] = None) -> Optional[PropertyListing]:
        """Validate, dedupe and insert one listing.

        Returns:
            Optional[PropertyListing]: The new row, None when invalid or already stored
        """
        row = self.transformer.to_listing_row(record, source, source_name=source_name,
                                              source_category=source_category, raw_data=raw_data)

        if not self._is_valid(row):
            return None

        if self.dedup.is_duplicate(row['external_id']):
            logger.debug(f"Property {row['external_id']} already exists, skipping")
            return None

        return self.loader.save_listing(row)

    def _is_valid(self, row: Dict[str, Any]) -> bool:
        if not settings.etl.validate_data:
            return True
        is_valid, errors = self.validator.validate(row)
        if not is_valid:
            logger.info(f"Skipping invalid property {row.get('external_id')}: {errors}")
        return is_valid
