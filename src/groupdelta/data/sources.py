"""Row source implementations that turn tabular input into records.

This module provides an abstract interface for row sources and concrete
implementations for CSV files, JSON Lines files and in-memory rows. Sources
never reject rows themselves: an unparseable cell becomes ``""`` or ``None``
and the aggregator decides whether the record is usable.
"""

from __future__ import annotations

import csv
import json
import logging
import math
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping

from groupdelta.data.periods import parse_period, parse_timestamp
from groupdelta.exceptions import DataSourceError
from groupdelta.types import Record

if TYPE_CHECKING:
    from groupdelta.types import AnalysisConfig

logger = logging.getLogger(__name__)


def _parse_float(value: Any) -> float | None:
    """Parse a numeric cell, tolerating thousands separators and blanks."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return None if math.isnan(number) else number


def _parse_key(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class RowSource(ABC):
    """Abstract base class for row sources.

    All row source implementations must inherit from this class and implement
    the `iter_records` method.
    """

    @abstractmethod
    def iter_records(self) -> Iterator[Record]:
        """Lazily yield one record per input row.

        :returns: Iterator of Record objects in source order.
        :raises DataSourceError: If the source cannot be opened or read.
        """
        ...


class ColumnMapping:
    """Column options shared by the file-based row sources.

    :param params: Source parameters:
        - key_col: Column holding the group key (default: "key")
        - value_col: Column holding the measurement (default: "value")
        - timestamp_col: Column holding a full timestamp (default: "timestamp")
        - timestamp_format: strptime format for timestamp_col (default: ISO/year)
        - year_col, month_col: Build the timestamp from a year and a month
          field instead of timestamp_col. Both must be given together.
    """

    def __init__(self, params: Mapping[str, Any]) -> None:
        self.key_col = params.get("key_col", "key")
        self.value_col = params.get("value_col", "value")
        self.timestamp_col = params.get("timestamp_col", "timestamp")
        self.timestamp_format = params.get("timestamp_format")
        self.year_col = params.get("year_col")
        self.month_col = params.get("month_col")

        if bool(self.year_col) != bool(self.month_col):
            raise DataSourceError(
                "'year_col' and 'month_col' must be given together"
            )

    @property
    def uses_period(self) -> bool:
        """Whether timestamps come from separate year and month columns."""
        return bool(self.year_col)

    @property
    def required_columns(self) -> list[str]:
        """Columns that must be present in the input."""
        if self.uses_period:
            return [self.key_col, self.year_col, self.month_col, self.value_col]
        return [self.key_col, self.timestamp_col, self.value_col]

    def check_columns(self, available: Iterable[str], origin: str) -> None:
        """Raise DataSourceError if any required column is missing."""
        available_set = set(available)
        missing = [c for c in self.required_columns if c not in available_set]
        if missing:
            raise DataSourceError(
                f"{origin} is missing required column(s): {', '.join(missing)}"
            )

    def to_record(self, row: Mapping[str, Any], source_index: Any) -> Record:
        """Build a record from one row, leaving bad cells empty."""
        if self.uses_period:
            timestamp = parse_period(row.get(self.year_col), row.get(self.month_col))
        else:
            timestamp = parse_timestamp(
                row.get(self.timestamp_col), self.timestamp_format
            )

        return Record(
            key=_parse_key(row.get(self.key_col)),
            timestamp=timestamp,
            value=_parse_float(row.get(self.value_col)),
            source_index=source_index,
        )


class CSVRowSource(RowSource):
    """Row source that reads records from a CSV file with a header row.

    :param source_params: Required parameters:
        - file_path: Path to the CSV file.
        Optional parameters: the :class:`ColumnMapping` options, plus
        - delimiter: CSV delimiter (default: ",")
        - encoding: File encoding (default: "utf-8-sig")
    """

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        """Initialize CSV row source.

        :param source_params: Configuration with file_path and optional column mappings.
        :raises DataSourceError: If file_path is not provided.
        """
        self.params = source_params or {}
        self.file_path = self.params.get("file_path")
        if not self.file_path:
            raise DataSourceError("CSVRowSource requires 'file_path' in source_params")

        self.columns = ColumnMapping(self.params)
        self.delimiter = self.params.get("delimiter", ",")
        self.encoding = self.params.get("encoding", "utf-8-sig")

    def iter_records(self) -> Iterator[Record]:
        """Read records from the CSV file.

        ``source_index`` is the 1-based data row number (the header is row 0).

        :returns: Iterator of Record objects.
        :raises DataSourceError: If the file is missing, unreadable or lacks a
            required column.
        """
        path = Path(self.file_path)
        if not path.exists():
            raise DataSourceError(f"CSV file not found: {self.file_path}")

        try:
            with open(path, newline="", encoding=self.encoding) as f:
                reader = csv.DictReader(f, delimiter=self.delimiter)
                self.columns.check_columns(reader.fieldnames or [], f"CSV file {path}")

                for row_number, row in enumerate(reader, start=1):
                    yield self.columns.to_record(row, row_number)

        except csv.Error as e:
            raise DataSourceError(f"CSV parsing error: {e}") from e
        except UnicodeDecodeError as e:
            raise DataSourceError(
                f"Failed to decode CSV file as {self.encoding}: {e}"
            ) from e
        except OSError as e:
            raise DataSourceError(f"Failed to read CSV file: {e}") from e


class JSONLinesRowSource(RowSource):
    """Row source that reads one JSON object per line.

    Blank lines are skipped. A line that is not a JSON object yields a record
    with no key, which the aggregator rejects.

    :param source_params: Required parameters:
        - file_path: Path to the JSON Lines file.
        Optional parameters: the :class:`ColumnMapping` options, plus
        - encoding: File encoding (default: "utf-8")
    """

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        self.params = source_params or {}
        self.file_path = self.params.get("file_path")
        if not self.file_path:
            raise DataSourceError(
                "JSONLinesRowSource requires 'file_path' in source_params"
            )

        self.columns = ColumnMapping(self.params)
        self.encoding = self.params.get("encoding", "utf-8")

    def iter_records(self) -> Iterator[Record]:
        """Read records from the file; ``source_index`` is the 1-based line number."""
        path = Path(self.file_path)
        if not path.exists():
            raise DataSourceError(f"JSON Lines file not found: {self.file_path}")

        try:
            with open(path, encoding=self.encoding) as f:
                for line_number, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        row = json.loads(line)
                    except json.JSONDecodeError as e:
                        logger.warning("Line %d is not valid JSON: %s", line_number, e)
                        row = None
                    if not isinstance(row, dict):
                        yield Record(source_index=line_number)
                        continue
                    yield self.columns.to_record(row, line_number)

        except UnicodeDecodeError as e:
            raise DataSourceError(
                f"Failed to decode JSON Lines file as {self.encoding}: {e}"
            ) from e
        except OSError as e:
            raise DataSourceError(f"Failed to read JSON Lines file: {e}") from e


class InMemoryRowSource(RowSource):
    """Row source over rows already held in memory.

    Rows may be mappings (read through the column options) or tuples of
    ``(key, timestamp, value)`` / ``(key, timestamp, value, source_index)``.
    Tuple timestamps are passed through unchanged, so any orderable type works.

    :param rows: Rows to serve.
    :param source_params: Optional :class:`ColumnMapping` options for mapping rows.
    """

    def __init__(
        self,
        rows: Iterable[Mapping[str, Any] | tuple[Any, ...]],
        source_params: dict[str, Any] | None = None,
    ) -> None:
        self.rows = rows
        self.params = source_params or {}
        self.columns = ColumnMapping(self.params)

    def iter_records(self) -> Iterator[Record]:
        """Yield records; ``source_index`` defaults to the 0-based row position."""
        for index, row in enumerate(self.rows):
            if isinstance(row, Mapping):
                yield self.columns.to_record(row, index)
                continue

            if len(row) not in (3, 4):
                raise DataSourceError(
                    f"Row {index} must have 3 or 4 fields, got {len(row)}"
                )
            key, timestamp, value = row[:3]
            yield Record(
                key=_parse_key(key),
                timestamp=timestamp,
                value=_parse_float(value),
                source_index=row[3] if len(row) == 4 else index,
            )


def resolve_row_source(config: AnalysisConfig) -> RowSource:
    """Construct a row source from configuration.

    :param config: AnalysisConfig with source_type and source_params.
    :returns: RowSource instance for the specified type.
    :raises DataSourceError: If source_type is unrecognized.
    """
    source_type = config.source_type.lower()

    if source_type == "csv":
        return CSVRowSource(config.source_params)
    elif source_type in ("jsonl", "json_lines"):
        return JSONLinesRowSource(config.source_params)
    else:
        raise DataSourceError(
            f"Unrecognized source type: '{config.source_type}'. "
            f"Supported types: csv, jsonl"
        )
