"""Extraction and aggregation module."""
from .models import Entry, ExtractionResult, AggregationResult, Statistics, BestMonth, month_key
from .extraction_client import ExtractionClient, classify_error, parse_extraction_response
from .aggregator import Aggregator, aggregate

__all__ = [
    "Entry",
    "ExtractionResult",
    "AggregationResult",
    "Statistics",
    "BestMonth",
    "month_key",
    "ExtractionClient",
    "classify_error",
    "parse_extraction_response",
    "Aggregator",
    "aggregate"
]
