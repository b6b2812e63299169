"""
Parser module - Turns the published tours sheet (CSV text) into tour records

Handles the quirks of real sheet exports:
- quoted cells containing commas ("Cairo, Giza")
- stray carriage returns and zero-width spaces
- blank lines and rows missing trailing cells
"""

import logging
import re
from datetime import datetime, timezone
from urllib.parse import quote

from services.tours.errors import MalformedInputError
from services.tours.models import (
    LAST_UPDATED_FIELD,
    NAME_FIELD,
    PHONE_FIELD,
    RECORD_ID_FIELD,
    WHATSAPP_LINK_FIELD,
    Record,
    RowWarning,
)

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY_CODE = "20"

# Pre-filled WhatsApp message, formatted with the tour name.
INQUIRY_MESSAGE = "مرحباً! أريد الاستفسار عن جولة: {name}"

WHATSAPP_BASE_URL = "https://wa.me/"

# Characters encodeURIComponent leaves alone; keeps links identical to the old site.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def clean_value(value: str) -> str:
    """
    Normalize a raw header or cell value

    Removes quote characters, carriage returns and zero-width spaces, then
    trims surrounding whitespace.
    """
    return value.replace('"', "").replace("\r", "").replace("\u200b", "").strip()


def smart_split(line: str) -> list[str]:
    """
    Split one CSV line on commas that are not inside double quotes

    A quote only toggles the in-quotes state; there is no escaping, so `""`
    inside a cell is not a literal quote. The last field is always emitted,
    which means "a,b," yields three fields.

    Examples:
    - 'a,b,c' -> ['a', 'b', 'c']
    - '"Cairo, Giza",50' -> ['Cairo, Giza', '50']
    """
    values = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current))
            current = []
        else:
            current.append(char)

    values.append("".join(current))
    return values


def normalize_phone(phone: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Keep digits only and make sure the number starts with the country code."""
    digits = re.sub(r"\D", "", phone)
    if digits.startswith(country_code):
        return digits
    return f"{country_code}{digits}"


def build_whatsapp_link(phone: str, tour_name: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """
    Build a wa.me chat link for a tour

    Args:
        phone: Phone number as typed in the sheet (spaces, dashes, + allowed)
        tour_name: Tour name inserted into the pre-filled inquiry message
        country_code: Calling code prepended when the number lacks it

    Returns:
        URL like https://wa.me/2001012345678?text=...
    """
    number = normalize_phone(phone, country_code)
    message = quote(INQUIRY_MESSAGE.format(name=tour_name), safe=_URI_COMPONENT_SAFE)
    return f"{WHATSAPP_BASE_URL}{number}?text={message}"


def _split_lines(csv_text: str) -> list[str]:
    lines = [line.strip() for line in csv_text.split("\n")]
    return [line for line in lines if line]


def parse_headers(header_line: str) -> list[str]:
    headers = [clean_value(h) for h in smart_split(header_line)]
    return [h for h in headers if h]


def parse_csv_with_warnings(
    csv_text: str,
    *,
    name_field: str = NAME_FIELD,
    phone_field: str = PHONE_FIELD,
    country_code: str = DEFAULT_COUNTRY_CODE,
) -> tuple[list[Record], list[RowWarning]]:
    """
    Parse CSV text into tour records, also returning skipped-row diagnostics

    Rows with fewer fields than the header are skipped; rows with more are
    accepted and the extra fields ignored. Rows without a value in
    `name_field` are dropped silently.

    Args:
        csv_text: Full CSV document, header row first
        name_field: Column that must be non-empty for a row to count as a tour
        phone_field: Column used to derive the WhatsApp link
        country_code: Calling code for phone normalization

    Returns:
        Tuple of (tours in source order, list of RowWarning)

    Raises:
        MalformedInputError: If there is no header plus at least one data row
    """
    lines = _split_lines(csv_text)
    if len(lines) < 2:
        raise MalformedInputError(
            "CSV data is too short - needs headers and at least one data row"
        )

    headers = parse_headers(lines[0])
    logger.debug("Headers found: %s", headers)

    parsed_at = datetime.now(timezone.utc).isoformat()
    tours: list[Record] = []
    warnings: list[RowWarning] = []

    for row_index, line in enumerate(lines[1:], start=1):
        values = smart_split(line)

        if len(values) < len(headers):
            warning = RowWarning(
                row=row_index,
                field_count=len(values),
                expected=len(headers),
                values=tuple(values),
            )
            logger.warning("Skipping row: %s", warning)
            warnings.append(warning)
            continue

        tour: Record = {}
        for index, header in enumerate(headers):
            tour[header] = clean_value(values[index]) if values[index] else ""

        name = tour.get(name_field, "")
        if not name:
            continue

        tour[RECORD_ID_FIELD] = str(row_index)
        tour[LAST_UPDATED_FIELD] = parsed_at

        phone = tour.get(phone_field, "")
        if phone:
            tour[WHATSAPP_LINK_FIELD] = build_whatsapp_link(phone, name, country_code)

        tours.append(tour)

    return tours, warnings


def parse_csv(
    csv_text: str,
    *,
    name_field: str = NAME_FIELD,
    phone_field: str = PHONE_FIELD,
    country_code: str = DEFAULT_COUNTRY_CODE,
) -> list[Record]:
    """Parse CSV text into tour records. See parse_csv_with_warnings."""
    tours, _ = parse_csv_with_warnings(
        csv_text, name_field=name_field, phone_field=phone_field, country_code=country_code
    )
    return tours
