"""
Tour cache service - keeps the parsed tours sheet in memory

One service instance tracks one sheet URL. Records are served from memory
while the snapshot is younger than the cache expiry; after that the sheet is
downloaded and parsed again. When a refresh fails, the last good snapshot is
served (even if expired) so a flaky sheet export never blanks the site.
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import requests

import config
from services.tours.errors import TourSheetError
from services.tours.fetcher import fetch_csv
from services.tours.models import (
    EXTERNAL_ID_FIELD,
    RECORD_ID_FIELD,
    CacheEntry,
    Record,
    RowWarning,
    TourStats,
)
from services.tours.parser import DEFAULT_COUNTRY_CODE, parse_csv_with_warnings

logger = logging.getLogger(__name__)


class TourSheetService:
    """
    Fetches, parses and caches the tours sheet

    Thread-safe: refreshes are serialized by a lock, so concurrent callers
    hitting an expired cache trigger a single download and share its result.
    Fresh reads never take the lock.
    """

    def __init__(
        self,
        sheet_url: Optional[str] = None,
        *,
        cache_expiry: float = 5 * 60,
        fetch_timeout: float = 10,
        country_code: str = DEFAULT_COUNTRY_CODE,
        min_body_length: int = 50,
        session: Optional[requests.Session] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.sheet_url = sheet_url
        self.cache_expiry = cache_expiry
        self.fetch_timeout = fetch_timeout
        self.country_code = country_code
        self.min_body_length = min_body_length
        self.session = session
        # Monotonic by default: cache age must not follow wall-clock steps.
        self._clock = clock or time.monotonic

        self._entry: Optional[CacheEntry] = None
        self._refresh_lock = threading.Lock()
        self.last_warnings: list[RowWarning] = []

    def _fresh_entry(self) -> Optional[CacheEntry]:
        entry = self._entry
        if entry is not None and entry.is_fresh(self._clock(), self.cache_expiry):
            return entry
        return None

    def _refresh(self) -> list[Record]:
        csv_text = fetch_csv(
            self.sheet_url,
            timeout=self.fetch_timeout,
            min_length=self.min_body_length,
            session=self.session,
        )
        tours, warnings = parse_csv_with_warnings(csv_text, country_code=self.country_code)
        self.last_warnings = warnings
        if warnings:
            logger.warning("Skipped %d malformed rows while parsing the sheet", len(warnings))

        self._entry = CacheEntry(tours=tours, fetched_at=self._clock())
        logger.info("Processed %d tours successfully", len(tours))
        return list(tours)

    def fetch_tours(self) -> list[Record]:
        """
        Get all tours, from cache when fresh

        Returns:
            List of tour records in sheet order

        Raises:
            ConfigurationError: No sheet URL and nothing cached
            RemoteFetchError: Download failed and nothing cached
            MalformedInputError: Sheet unusable and nothing cached
        """
        entry = self._fresh_entry()
        if entry is not None:
            logger.debug("Using cached data")
            return list(entry.tours)

        with self._refresh_lock:
            # Another thread may have refreshed while we waited.
            entry = self._fresh_entry()
            if entry is not None:
                return list(entry.tours)

            try:
                return self._refresh()
            except TourSheetError as e:
                logger.error("Error fetching tours data: %s", e)
                stale = self._entry
                if stale is None:
                    raise
                logger.warning(
                    "Using expired cache due to fetch error (age %.0fs)",
                    stale.age_seconds(self._clock()),
                )
                return list(stale.tours)

    def search_tours(self, query: Optional[str]) -> list[Record]:
        """Tours where any value contains query (case-insensitive). Blank query returns all."""
        tours = self.fetch_tours()
        if not query or not query.strip():
            return tours

        search_term = query.lower()
        return [
            tour
            for tour in tours
            if any(isinstance(value, str) and search_term in value.lower() for value in tour.values())
        ]

    def get_tour_by_id(self, tour_id: str) -> Optional[Record]:
        """Find a tour by its row id or by the sheet's own ID column."""
        for tour in self.fetch_tours():
            if tour.get(RECORD_ID_FIELD) == tour_id or tour.get(EXTERNAL_ID_FIELD) == tour_id:
                return tour
        return None

    def get_stats(self) -> TourStats:
        tours = self.fetch_tours()
        entry = self._entry
        return TourStats(
            total_tours=len(tours),
            cache_status="active" if entry is not None else "empty",
            cache_age_ms=max(0, int(entry.age_seconds(self._clock()) * 1000)) if entry else 0,
            last_updated=datetime.now(timezone.utc).isoformat(),
        )

    def clear_cache(self) -> None:
        self._entry = None
        logger.info("Cache cleared")


# Process-wide instance built from config
_service = None


def get_service() -> TourSheetService:
    """Get or create the process-wide service configured from config.py"""
    global _service
    if _service is None:
        _service = TourSheetService(
            config.SHEET_URL,
            cache_expiry=config.CACHE_EXPIRY_SECONDS,
            fetch_timeout=config.FETCH_TIMEOUT_SECONDS,
            country_code=config.COUNTRY_CODE,
            min_body_length=config.MIN_CSV_LENGTH,
        )
    return _service
