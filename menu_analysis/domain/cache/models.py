"""
Cache entry models.

Entries are written once per fingerprint and serialised as JSON with
camelCase keys into the key/value store.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from menu_analysis.domain.menu.models import AnalysisResponse, MenuInputType


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheMeta(BaseModel):
    """
    Provenance of a cached analysis.

    Attributes:
        input_type: text, url or image
        source: Display source (URL, text excerpt or image label)
        timestamp: When the analysis was produced
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    input_type: MenuInputType
    source: str = ""
    timestamp: datetime = Field(default_factory=_utc_now)


class CacheEntry(BaseModel):
    """Cached analysis response stored under its fingerprint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    key: str = Field(..., min_length=1)
    response: AnalysisResponse
    meta: CacheMeta
    timestamp: datetime = Field(default_factory=_utc_now)

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        return ((now or _utc_now()) - self.timestamp).total_seconds()


class CacheStats(BaseModel):
    """
    Snapshot of one cache namespace.

    Attributes:
        total_entries: Readable entries in the namespace
        total_size_bytes: Approximate stored size (UTF-8 bytes of every value)
        oldest: Timestamp of the oldest readable entry
        newest: Timestamp of the newest readable entry
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    total_entries: int = 0
    total_size_bytes: int = 0
    oldest: Optional[datetime] = None
    newest: Optional[datetime] = None
