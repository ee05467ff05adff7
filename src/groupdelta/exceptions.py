"""groupdelta exception hierarchy.

All groupdelta-specific exceptions derive from :class:`GroupDeltaError` so callers
can catch every aggregation-related error uniformly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from groupdelta.types import Record


class GroupDeltaError(Exception):
    """Base class for groupdelta exceptions.

    Derived exceptions should extend this class so that callers can catch all
    groupdelta errors uniformly.
    """


class ConfigError(GroupDeltaError):
    """Raised when configuration files or parameters are invalid."""


class DataSourceError(GroupDeltaError):
    """Raised when opening or reading a row source fails."""


class InvalidRecordError(GroupDeltaError):
    """Raised by ``ingest`` when a record has no usable key, timestamp or value.

    The offending record is rejected; the aggregator stays valid and ingestion
    can continue with the next record.

    :param reason: Human-readable explanation of the rejection.
    :param record: The rejected record, if available.
    """

    def __init__(self, reason: str, record: Record | Any = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.record = record


class AggregatorSealedError(GroupDeltaError):
    """Raised when an aggregator is fed records after ``finalize()``."""


__all__ = [
    "GroupDeltaError",
    "ConfigError",
    "DataSourceError",
    "InvalidRecordError",
    "AggregatorSealedError",
]
