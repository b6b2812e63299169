"""
Tours sheet ingestion: CSV fetch, parsing and in-memory caching
"""

from services.tours.errors import (
    ConfigurationError,
    MalformedInputError,
    RemoteFetchError,
    TourSheetError,
)
from services.tours.fetcher import fetch_csv
from services.tours.models import CacheEntry, Record, RowWarning, TourStats
from services.tours.parser import (
    build_whatsapp_link,
    clean_value,
    parse_csv,
    parse_csv_with_warnings,
    smart_split,
)
from services.tours.service import TourSheetService, get_service

__all__ = [
    "TourSheetService",
    "get_service",
    "fetch_csv",
    "parse_csv",
    "parse_csv_with_warnings",
    "smart_split",
    "clean_value",
    "build_whatsapp_link",
    "CacheEntry",
    "Record",
    "RowWarning",
    "TourStats",
    "TourSheetError",
    "ConfigurationError",
    "RemoteFetchError",
    "MalformedInputError",
]
