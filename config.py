"""
Runtime configuration. Every value can be overridden with an environment variable.
"""

import os


def _read_int(name: str, default: int) -> int:
    """Read an integer env var, failing loudly on garbage."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"Configuration error: {name} must be an integer, got {raw!r}") from e


DEBUG = os.getenv("DEBUG", "0") == "1"
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO")


# Published CSV export of the tours sheet. Fetching fails until this is set.
SHEET_URL = os.getenv("SHEET_URL") or None

CACHE_EXPIRY_SECONDS = _read_int("CACHE_EXPIRY_SECONDS", 5 * 60)
FETCH_TIMEOUT_SECONDS = _read_int("FETCH_TIMEOUT_SECONDS", 10)

# Anything shorter is treated as an error page rather than sheet data.
MIN_CSV_LENGTH = _read_int("MIN_CSV_LENGTH", 50)

# Calling code prepended to phone numbers for WhatsApp links (Egypt).
COUNTRY_CODE = os.getenv("COUNTRY_CODE", "20")

USER_AGENT = os.getenv("USER_AGENT", "Alarab-Tours-Bot/1.0")


API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = _read_int("API_PORT", 5000)
