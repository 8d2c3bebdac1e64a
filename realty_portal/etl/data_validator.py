"""Data validation module for normalized property records."""

from typing import Dict, Any, Tuple, List
import logging

from ..models.property_models import PropertyType, Purpose

logger = logging.getLogger(__name__)


class DataValidator:
    """Validates property records for quality and completeness before insert."""

    def __init__(self):
        """Initialize the data validator."""
        self.required_fields = ['title', 'external_id']

        # VND prices run into the billions
        self.validation_rules = {
            'price': {'min': 1000, 'max': 1_000_000_000_000},
            'bedrooms': {'min': 0, 'max': 20},
            'bathrooms': {'min': 0, 'max': 20},
            'area_sqft': {'min': 1, 'max': 100000},
        }

        self.allowed_values = {
            'property_type': {item.value for item in PropertyType} | {'House', 'Room'},
            'purpose': {item.value for item in Purpose},
        }

    def validate(self, record: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """Validate a single property record.

        Args:
            record: Normalized property data

        Returns:
            Tuple[bool, List[str]]: (is_valid, error_messages)
        """
        errors = []
        errors.extend(self._validate_required_fields(record))
        errors.extend(self._validate_ranges(record))
        errors.extend(self._validate_enums(record))

        is_valid = len(errors) == 0
        if not is_valid:
            logger.debug(f"Validation failed for property {record.get('external_id', 'unknown')}: {errors}")

        return is_valid, errors

    def _validate_required_fields(self, data: Dict[str, Any]) -> List[str]:
        errors = []
        for field in self.required_fields:
            if field not in data or data[field] is None or data[field] == '':
                errors.append(f"Required field '{field}' is missing or empty")
        return errors

    def _validate_ranges(self, data: Dict[str, Any]) -> List[str]:
        errors = []
        for field, rules in self.validation_rules.items():
            value = data.get(field)
            if value is None:
                continue
            if value < rules['min'] or value > rules['max']:
                errors.append(f"{field} {value} is outside [{rules['min']}, {rules['max']}]")
        return errors

    def _validate_enums(self, data: Dict[str, Any]) -> List[str]:
        errors = []
        for field, allowed in self.allowed_values.items():
            value = data.get(field)
            if value is not None and value not in allowed:
                errors.append(f"{field} '{value}' is not one of {sorted(allowed)}")
        return errors
