"""LLM enrichment package."""

from .ai_client import AIClient, EnrichmentError
from .enricher import Enricher
from .relevance import calculate_relevance_score

__all__ = ["AIClient", "EnrichmentError", "Enricher", "calculate_relevance_score"]
