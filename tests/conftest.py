"""
Pytest fixtures for testing
"""
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from services.tours.service import TourSheetService  # noqa: E402
from sheet_helpers import SAMPLE_CSV, SHEET_URL, FakeClock, make_response  # noqa: E402


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    """Mock requests session serving SAMPLE_CSV"""
    mock_session = MagicMock(spec=requests.Session)
    mock_session.get.return_value = make_response(SAMPLE_CSV)
    return mock_session


@pytest.fixture
def service(session, clock):
    """Service wired to the mock session and the fake clock"""
    return TourSheetService(SHEET_URL, session=session, clock=clock)
