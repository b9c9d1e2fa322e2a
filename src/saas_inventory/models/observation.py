"""RawObservation — one connector's report about one domain at one point in time.

Observations are immutable once emitted. The Deduplicator consumes them
immediately and does not retain them.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class RawObservation(BaseModel):
    """A single raw signal about a third-party application."""

    model_config = ConfigDict(frozen=True)

    source_id: str = Field(min_length=1)
    domain: str = Field(min_length=1)  # as reported; normalized by the merger
    observed_at: datetime = Field(default_factory=_utcnow)
    raw_permissions: frozenset[str] = frozenset()
    raw_data_types: frozenset[str] = frozenset()

    @field_validator("observed_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
