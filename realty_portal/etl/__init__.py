"""ETL package for property extraction, cleaning and persistence."""

from .extractor import PropertyExtractor, is_property_listing, extract_district
from .transform import PropertyTransformer
from .data_validator import DataValidator
from .deduplication import DeduplicationEngine
from .load import PropertyLoader

__all__ = [
    "PropertyExtractor",
    "is_property_listing",
    "extract_district",
    "PropertyTransformer",
    "DataValidator",
    "DeduplicationEngine",
    "PropertyLoader"
]
