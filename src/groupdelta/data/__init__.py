"""Row sources and timestamp parsing module."""

from groupdelta.data.periods import parse_month, parse_period, parse_timestamp
from groupdelta.data.sources import (ColumnMapping, CSVRowSource,
                                     InMemoryRowSource, JSONLinesRowSource,
                                     RowSource, resolve_row_source)

__all__ = [
    "RowSource",
    "ColumnMapping",
    "CSVRowSource",
    "JSONLinesRowSource",
    "InMemoryRowSource",
    "resolve_row_source",
    "parse_month",
    "parse_period",
    "parse_timestamp",
]
