"""Core type definitions for groupdelta.

All data models use Pydantic BaseModel for automatic validation, JSON
serialization, and better error messages.
"""

from __future__ import annotations

from typing import Any, NewType

from pydantic import BaseModel, ConfigDict, Field

# Type alias for the categorical field values are grouped by
GroupKey = NewType("GroupKey", str)


# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class FrozenModel(BaseModel):
    """Base model with frozen (immutable) configuration."""

    model_config = ConfigDict(frozen=True)


class MutableModel(BaseModel):
    """Base model for mutable state objects."""

    model_config = ConfigDict(validate_assignment=True)


# ---------------------------------------------------------------------------
# Record Types
# ---------------------------------------------------------------------------


class Record(FrozenModel):
    """One parsed input row: a group key, a timestamp and a measurement.

    Row sources turn unparseable cells into ``""`` / ``None`` rather than
    failing, so validity is checked by the aggregator at ingest time. A
    non-string key (including ``None``) fails here, at construction.

    :param key: Group identifier (e.g. a country name).
    :param timestamp: Totally-ordered temporal value (date, datetime, year, ...).
    :param value: Numeric measurement for this row.
    :param source_index: Opaque back-reference to the source row (e.g. row number).
    """

    key: str = ""
    timestamp: Any = None
    value: float | None = None
    source_index: Any = None


class GroupExtrema(MutableModel):
    """Running oldest and newest records for one group.

    Both fields reference ingested :class:`Record` instances, never copies.
    ``oldest.timestamp <= newest.timestamp`` holds after every update.

    :param oldest: Record with the smallest timestamp seen so far.
    :param newest: Record with the largest timestamp seen so far.
    :param count: Number of records absorbed into this group.
    """

    oldest: Record
    newest: Record
    count: int = 1

    @classmethod
    def from_record(cls, record: Record) -> GroupExtrema:
        """Start a group whose oldest and newest are the same record."""
        return cls(oldest=record, newest=record)

    def absorb(self, record: Record) -> bool:
        """Apply one record to the extrema.

        The minimum is checked before the maximum. Ties never replace an
        extremum, so the first record seen at a given timestamp wins.

        :param record: Record with the same key as this group.
        :returns: True if ``oldest`` or ``newest`` changed.
        :raises TypeError: If the timestamp cannot be compared with the extrema.
        """
        changed = False
        if record.timestamp < self.oldest.timestamp:
            self.oldest = record
            changed = True
        elif record.timestamp > self.newest.timestamp:
            self.newest = record
            changed = True
        self.count += 1
        return changed

    def merge(self, other: GroupExtrema) -> None:
        """Fold another partial for the same key into this one.

        On equal timestamps this group's records are kept.

        :raises TypeError: If timestamps of the two partials are not comparable.
        """
        take_oldest = other.oldest.timestamp < self.oldest.timestamp
        take_newest = other.newest.timestamp > self.newest.timestamp
        if take_oldest:
            self.oldest = other.oldest
        if take_newest:
            self.newest = other.newest
        self.count += other.count


class RejectedRecord(FrozenModel):
    """A record refused by ``ingest``, with the reason.

    :param record: The rejected record.
    :param reason: Why the record was rejected.
    """

    record: Record
    reason: str


class IngestReport(MutableModel):
    """Outcome of feeding a sequence of records into an aggregator.

    :param accepted: Number of records applied to a group.
    :param rejected: Records refused as invalid, in input order.
    """

    accepted: int = 0
    rejected: list[RejectedRecord] = Field(default_factory=list)

    @property
    def total(self) -> int:
        """Total number of records seen."""
        return self.accepted + len(self.rejected)


# ---------------------------------------------------------------------------
# Metric Types
# ---------------------------------------------------------------------------


class MetricResult(FrozenModel):
    """Percent change between a group's oldest and newest values.

    :param key: Group identifier.
    :param percent_change: ``(newest - oldest) / divisor * 100``.
    :param divisor: Denominator used, 1.0 when the oldest value was zero.
    :param divisor_clamped: True if the zero-divisor clamp was applied.
    :param oldest: Oldest record of the group.
    :param newest: Newest record of the group.
    """

    key: str
    percent_change: float
    divisor: float
    divisor_clamped: bool = False
    oldest: Record
    newest: Record


# ---------------------------------------------------------------------------
# Configuration Types
# ---------------------------------------------------------------------------


class AnalysisConfig(FrozenModel):
    """Configuration for an analysis run.

    :param source_type: Row source type (e.g., "csv", "jsonl").
    :param source_params: Source-specific parameters.
    :param sort_by: Result ordering ("key", "percent_change" or "none").
    :param descending: Reverse the result ordering.
    :param limit: Only report the first N results (None = all).
    :param log_level: Logging level.
    """

    source_type: str
    source_params: dict[str, Any] = Field(default_factory=dict)
    sort_by: str = "key"
    descending: bool = False
    limit: int | None = None
    log_level: str = "INFO"
