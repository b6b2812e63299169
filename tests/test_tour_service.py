"""
Tests for TourSheetService caching, fallback and queries
"""
import threading
import time
from unittest.mock import patch

import pytest
import requests

from services.tours.errors import ConfigurationError, MalformedInputError, RemoteFetchError
from services.tours.service import TourSheetService
from sheet_helpers import SHEET_URL, UPDATED_CSV, make_response


class TestFetchTours:
    """Cache freshness and stale fallback"""

    def test_first_call_fetches_and_parses(self, service, session):
        tours = service.fetch_tours()

        assert [t["Name"] for t in tours] == ["Cairo, Pyramids Tour", "Luxor Day Trip"]
        assert session.get.call_count == 1
        assert [w.row for w in service.last_warnings] == [4]

    def test_second_call_within_expiry_uses_cache(self, service, session, clock):
        first = service.fetch_tours()
        clock.advance(299)
        second = service.fetch_tours()

        assert session.get.call_count == 1
        assert second == first

    def test_expired_cache_refetches(self, service, session, clock):
        service.fetch_tours()
        session.get.return_value = make_response(UPDATED_CSV)
        clock.advance(300)

        tours = service.fetch_tours()

        assert session.get.call_count == 2
        assert [t["Name"] for t in tours] == ["Aswan Felucca Ride"]

    def test_custom_expiry(self, session, clock):
        service = TourSheetService(SHEET_URL, cache_expiry=10, session=session, clock=clock)
        service.fetch_tours()
        clock.advance(11)
        service.fetch_tours()

        assert session.get.call_count == 2

    def test_stale_cache_served_on_http_error(self, service, session, clock):
        original = service.fetch_tours()
        session.get.return_value = make_response("Server error page", status_code=500)
        clock.advance(600)

        assert service.fetch_tours() == original
        assert session.get.call_count == 2

    def test_stale_cache_served_on_timeout(self, service, session, clock):
        original = service.fetch_tours()
        session.get.side_effect = requests.Timeout("timed out")
        clock.advance(600)

        assert service.fetch_tours() == original

    def test_stale_cache_served_on_malformed_sheet(self, service, session, clock):
        original = service.fetch_tours()
        session.get.return_value = make_response("Name,Price" + " " * 60 + "\n\n")
        clock.advance(600)

        assert service.fetch_tours() == original

    def test_failed_refresh_keeps_old_entry(self, service, session, clock):
        """After a failed refresh the next call tries the network again"""
        service.fetch_tours()
        session.get.return_value = make_response("oops", status_code=503)
        clock.advance(600)
        service.fetch_tours()

        session.get.return_value = make_response(UPDATED_CSV)
        tours = service.fetch_tours()

        assert session.get.call_count == 3
        assert [t["Name"] for t in tours] == ["Aswan Felucca Ride"]

    def test_cold_cache_http_error_raises(self, service, session):
        session.get.return_value = make_response("Server error page", status_code=500)

        with pytest.raises(RemoteFetchError):
            service.fetch_tours()

    def test_cold_cache_timeout_raises(self, service, session):
        session.get.side_effect = requests.Timeout("timed out")

        with pytest.raises(RemoteFetchError):
            service.fetch_tours()

    def test_cold_cache_malformed_raises(self, service, session):
        session.get.return_value = make_response(
            "Name,Price,Phone,Description,Duration,Rating,Pickup Location\n"
        )

        with pytest.raises(MalformedInputError):
            service.fetch_tours()
        # Nothing was cached, so the next call goes back to the network.
        with pytest.raises(MalformedInputError):
            service.fetch_tours()
        assert session.get.call_count == 2

    def test_missing_url_raises_configuration_error(self, session, clock):
        service = TourSheetService(None, session=session, clock=clock)

        with pytest.raises(ConfigurationError):
            service.fetch_tours()
        session.get.assert_not_called()

    def test_empty_sheet_is_empty_success(self, service, session):
        session.get.return_value = make_response(
            "Name,Price,Phone,Description\n,10,,Row without a tour name\n"
        )

        assert service.fetch_tours() == []

    def test_concurrent_callers_share_one_fetch(self, service, session):
        def slow_get(*args, **kwargs):
            time.sleep(0.05)
            return make_response(UPDATED_CSV)

        session.get.side_effect = slow_get
        results = []

        def worker():
            results.append(service.fetch_tours())

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert session.get.call_count == 1
        assert len(results) == 5
        assert all(r == results[0] for r in results)

    def test_redirect_status_is_not_cached(self, service, session):
        session.get.return_value = make_response(
            "Name,Price,Phone,Description\nPyramids Sound and Light,30,,Evening show\n",
            status_code=304,
        )

        with pytest.raises(RemoteFetchError):
            service.fetch_tours()
        with pytest.raises(RemoteFetchError):
            service.fetch_tours()
        assert session.get.call_count == 2

    def test_default_clock_is_monotonic(self, session, clock):
        with patch("services.tours.service.time.monotonic", clock):
            service = TourSheetService(SHEET_URL, session=session)
            service.fetch_tours()
            clock.advance(299)
            service.fetch_tours()
            clock.advance(2)
            service.fetch_tours()

        assert session.get.call_count == 2

    def test_mutating_result_leaves_cache_intact(self, service, session):
        service.fetch_tours().clear()
        service.fetch_tours().clear()

        assert len(service.fetch_tours()) == 2
        assert session.get.call_count == 1


class TestQueries:
    """search_tours, get_tour_by_id, get_stats, clear_cache"""

    def test_blank_query_returns_everything(self, service):
        everything = service.fetch_tours()

        assert service.search_tours("") == everything
        assert service.search_tours("   ") == everything
        assert service.search_tours(None) == everything

    def test_search_is_case_insensitive(self, service):
        results = service.search_tours("CAIRO")
        assert [t["Name"] for t in results] == ["Cairo, Pyramids Tour"]

    def test_search_matches_any_field(self, service):
        results = service.search_tours("valley of the kings")
        assert [t["Name"] for t in results] == ["Luxor Day Trip"]

    def test_search_no_match(self, service):
        assert service.search_tours("alexandria") == []

    def test_get_tour_by_row_id(self, service):
        assert service.get_tour_by_id("2")["Name"] == "Luxor Day Trip"

    def test_get_tour_by_id_column(self, session, clock):
        session.get.return_value = make_response(
            "ID,Name,Price\nT-100,Siwa Oasis Safari,300\nT-200,White Desert Camp,250\n"
        )
        service = TourSheetService(SHEET_URL, session=session, clock=clock)

        assert service.get_tour_by_id("T-200")["Name"] == "White Desert Camp"

    def test_get_tour_missing(self, service):
        assert service.get_tour_by_id("99") is None

    def test_stats(self, service, clock):
        service.fetch_tours()
        clock.advance(2.5)

        stats = service.get_stats()

        assert stats.total_tours == 2
        assert stats.cache_status == "active"
        assert stats.cache_age_ms == 2500
        assert stats.last_updated

    def test_clear_cache_forces_refetch(self, service, session):
        service.fetch_tours()
        service.clear_cache()
        service.fetch_tours()

        assert session.get.call_count == 2

    def test_clear_cache_removes_stale_fallback(self, service, session):
        service.fetch_tours()
        service.clear_cache()
        session.get.return_value = make_response("down", status_code=500)

        with pytest.raises(RemoteFetchError):
            service.fetch_tours()
