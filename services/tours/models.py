"""
Data shapes shared by the parser, the cache service and the API.

Tour records themselves stay plain dicts: sheet columns are not fixed, so the
known ones are looked up by the key constants below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, Field

Record = dict[str, str]

NAME_FIELD = "Name"
PHONE_FIELD = "Phone"
EXTERNAL_ID_FIELD = "ID"

RECORD_ID_FIELD = "_id"
LAST_UPDATED_FIELD = "_lastUpdated"
WHATSAPP_LINK_FIELD = "WhatsAppLink"


@dataclass(frozen=True)
class RowWarning:
    """A data row the parser skipped. `row` is 1-based over data rows."""

    row: int
    field_count: int
    expected: int
    values: tuple[str, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return f"Row {self.row} has {self.field_count} fields, expected at least {self.expected}"


@dataclass(frozen=True)
class CacheEntry:
    tours: list[Record]
    fetched_at: float

    def age_seconds(self, now: float) -> float:
        return now - self.fetched_at

    def is_fresh(self, now: float, expiry_seconds: float) -> bool:
        return self.age_seconds(now) < expiry_seconds


class TourStats(BaseModel):
    total_tours: int = Field(ge=0)
    cache_status: Literal["active", "empty"]
    cache_age_ms: int = Field(ge=0)
    last_updated: str
