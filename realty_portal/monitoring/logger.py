"""Logging configuration and setup."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional
import structlog

from ..config import settings


def setup_logging(log_file: Optional[str] = None, log_level: Optional[str] = None) -> None:
    """Set up structured logging for the application.

    Args:
        log_file: Optional log file path
        log_level: Logging level
    """
    # Use settings if parameters not provided
    if log_file is None:
        log_file = settings.log_file
    if log_level is None:
        log_level = settings.log_level

    level = getattr(logging, log_level.upper(), logging.INFO)

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(ensure_ascii=False)
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            '{"timestamp": "%(asctime)s", "logger": "%(name)s", "level": "%(levelname)s", "message": "%(message)s"}'
        ))
        root_logger.addHandler(file_handler)

    # Quiet chatty libraries
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logging.info(f"Logging configured - Level: {log_level}, File: {log_file}")


class ScrapingLogger:
    """Specialized logger for scraping operations."""

    def __init__(self, source_name: str, job_id: Optional[int] = None):
        """Initialize scraping logger.

        Args:
            source_name: Name of the data source being scraped
            job_id: Optional scraping job ID for tracking
        """
        self.source_name = source_name
        self.job_id = job_id
        self.logger = structlog.get_logger(f"scraper.{source_name}")

        if job_id is not None:
            self.logger = self.logger.bind(job_id=job_id)

    def log_scrape_start(self, source_type: str, target: Optional[str]):
        """Log start of a source scrape."""
        self.logger.info(
            "Scraping started",
            source_type=source_type,
            target=target,
            source=self.source_name
        )

    def log_property_processed(self, external_id: Optional[str], saved: bool, reason: Optional[str] = None):
        """Log the outcome for one extracted property.

        Args:
            external_id: Identifier of the property
            saved: Whether a new row was written
            reason: Why the property was skipped, if it was
        """
        if saved:
            self.logger.debug("Property saved", external_id=external_id, source=self.source_name)
        else:
            self.logger.debug(
                "Property skipped",
                external_id=external_id,
                reason=reason,
                source=self.source_name
            )

    def log_scrape_complete(self, properties_found: int, properties_saved: int,
                            processing_time: float):
        """Log completion of a source scrape."""
        self.logger.info(
            "Scraping completed",
            properties_found=properties_found,
            properties_saved=properties_saved,
            processing_time=processing_time,
            source=self.source_name
        )

    def log_error(self, error: Exception, context: Optional[dict] = None):
        """Log an error with context.

        Args:
            error: Exception that occurred
            context: Additional context information
        """
        self.logger.error(
            "Scraping error",
            error=str(error),
            error_type=type(error).__name__,
            context=context or {},
            source=self.source_name
        )


class ETLLogger:
    """Specialized logger for batch processing such as the news pipeline."""

    def __init__(self, process_name: str, batch_id: Optional[str] = None):
        self.process_name = process_name
        self.batch_id = batch_id
        self.logger = structlog.get_logger(f"etl.{process_name}")

        if batch_id:
            self.logger = self.logger.bind(batch_id=batch_id)

    def log_batch_start(self, record_count: int, source: str):
        """Log start of batch processing."""
        self.logger.info(
            "ETL batch started",
            record_count=record_count,
            source=source,
            process=self.process_name
        )

    def log_deduplication_results(self, input_count: int, unique_count: int, duplicates: int):
        """Log deduplication results."""
        self.logger.info(
            "Deduplication completed",
            input_records=input_count,
            unique_records=unique_count,
            duplicates=duplicates,
            process=self.process_name
        )

    def log_batch_complete(self, total_time: float, success: bool, summary: dict):
        """Log completion of batch processing."""
        self.logger.info(
            "ETL batch completed",
            total_time=total_time,
            success=success,
            summary=summary,
            process=self.process_name
        )


class APILogger:
    """Specialized logger for API operations."""

    def __init__(self):
        self.logger = structlog.get_logger("api")

    def log_response(self, method: str, path: str, status_code: int, response_time: float):
        """Log API response."""
        self.logger.info(
            "API response",
            method=method,
            path=path,
            status_code=status_code,
            response_time=response_time
        )
