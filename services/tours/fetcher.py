"""
Fetcher module - Downloads the published tours sheet as CSV text
"""

import logging

import requests

import config
from services.tours.errors import ConfigurationError, RemoteFetchError

logger = logging.getLogger(__name__)


def fetch_csv(
    url: str | None,
    *,
    timeout: float = 10,
    min_length: int = 50,
    session: requests.Session | None = None,
    user_agent: str | None = None,
) -> str:
    """
    Download CSV text from URL

    Args:
        url: Published sheet URL (output=csv)
        timeout: Seconds allowed per socket operation (connect, each read), not for the
            whole download
        min_length: Bodies shorter than this are rejected as not being sheet data
        session: Optional requests session (tests pass a mock)
        user_agent: User-Agent header, defaults to config.USER_AGENT

    Returns:
        Response body as text

    Raises:
        ConfigurationError: If url is not set; raised before any network access
        RemoteFetchError: On timeout, connection error, any non-2xx status (3xx included)
            or a short body
    """
    if not url:
        raise ConfigurationError("SHEET_URL is not configured in environment variables")

    http = session or requests
    headers = {"User-Agent": user_agent or config.USER_AGENT}

    logger.info("Fetching fresh data from %s", url)
    try:
        response = http.get(url, headers=headers, timeout=timeout)
    except requests.Timeout as e:
        raise RemoteFetchError(f"Timed out after {timeout}s fetching {url}") from e
    except requests.RequestException as e:
        raise RemoteFetchError(f"Request to {url} failed: {e}") from e

    if not 200 <= response.status_code < 300:
        raise RemoteFetchError(
            f"HTTP {response.status_code}: {response.reason}",
            status_code=response.status_code,
        )

    # Sheet exports are UTF-8; requests would guess latin-1 when no charset is sent.
    if "charset" not in response.headers.get("Content-Type", "").lower():
        response.encoding = "utf-8"
    csv_text = response.text

    if not csv_text or len(csv_text) < min_length:
        raise RemoteFetchError(
            f"Received empty or too short CSV data ({len(csv_text or '')} characters)",
            status_code=response.status_code,
        )

    logger.info("Fetched %d characters of CSV data", len(csv_text))
    return csv_text
