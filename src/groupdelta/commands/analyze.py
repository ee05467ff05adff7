"""Configuration and execution for the analyze command.

Example config file (analyze.yaml):

    source:
      type: "csv"
      params:
        file_path: "prices.csv"   # relative paths resolve against this file
        key_col: "Country"
        year_col: "Year"
        month_col: "Month"
        value_col: "Price"
    output:
      sort_by: "percent_change"   # key | percent_change | none
      descending: true
      limit: 10                   # Optional
    logging:
      level: "INFO"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from groupdelta.aggregation import MetricCalculator, StreamingAggregator
from groupdelta.data.sources import RowSource, resolve_row_source
from groupdelta.exceptions import ConfigError
from groupdelta.logging_utils import VALID_LOG_LEVELS, get_logger
from groupdelta.types import AnalysisConfig, IngestReport, MetricResult

logger = get_logger(__name__)

# Valid row source types
VALID_SOURCE_TYPES = frozenset(["csv", "jsonl", "json_lines"])

# Valid result orderings
VALID_SORT_KEYS = frozenset(["key", "percent_change", "none"])


class AnalysisResult(BaseModel):
    """Results from an analysis run.

    :param results: One metric per group, ordered as configured.
    :param report: Accepted/rejected record counts from ingestion.
    :param group_count: Number of distinct groups found.
    """

    results: list[MetricResult] = Field(default_factory=list)
    report: IngestReport = Field(default_factory=IngestReport)
    group_count: int = 0

    @property
    def clamped(self) -> list[MetricResult]:
        """Results whose oldest value was zero and had the divisor clamped."""
        return [r for r in self.results if r.divisor_clamped]


def _resolve_params(params: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    """Resolve a relative ``file_path`` against the config file's directory."""
    file_path = params.get("file_path")
    if file_path and not Path(file_path).is_absolute():
        return {**params, "file_path": str(base_dir / file_path)}
    return params


def load_analysis_config(config_path: str | Path) -> AnalysisConfig:
    """Parse and validate an analyze configuration file.

    :param config_path: Path to YAML configuration file.
    :returns: Validated AnalysisConfig object.
    :raises ConfigError: If file cannot be read or config is invalid.
    """
    config_path = Path(config_path)

    # Read and parse YAML
    try:
        with open(config_path) as f:
            raw_config = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError("Configuration must be a YAML mapping")

    # Parse source
    if "source" not in raw_config:
        raise ConfigError("Missing required field: source")
    raw_source = raw_config["source"]
    if not isinstance(raw_source, dict):
        raise ConfigError("'source' must be a mapping with 'type' and 'params'")

    source_type = raw_source.get("type")
    if source_type not in VALID_SOURCE_TYPES:
        raise ConfigError(
            f"Invalid source type '{source_type}'. "
            f"Valid options: {sorted(VALID_SOURCE_TYPES)}"
        )

    source_params = raw_source.get("params", {})
    if not isinstance(source_params, dict):
        raise ConfigError("'source.params' must be a mapping")
    source_params = _resolve_params(source_params, config_path.parent)

    # Parse output (optional)
    raw_output = raw_config.get("output", {})
    if not isinstance(raw_output, dict):
        raise ConfigError("'output' must be a mapping")

    sort_by = raw_output.get("sort_by", "key")
    if sort_by not in VALID_SORT_KEYS:
        raise ConfigError(
            f"Invalid output.sort_by '{sort_by}'. "
            f"Valid options: {sorted(VALID_SORT_KEYS)}"
        )

    descending = raw_output.get("descending", False)
    if not isinstance(descending, bool):
        raise ConfigError("'output.descending' must be a boolean")

    limit = raw_output.get("limit")
    if limit is not None and (
        isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0
    ):
        raise ConfigError("'output.limit' must be a positive integer")

    # Parse logging (optional)
    raw_logging = raw_config.get("logging", {})
    if not isinstance(raw_logging, dict):
        raise ConfigError("'logging' must be a mapping")

    log_level = str(raw_logging.get("level", "INFO")).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ConfigError(
            f"Invalid logging.level '{log_level}'. "
            f"Valid options: {sorted(VALID_LOG_LEVELS)}"
        )

    return AnalysisConfig(
        source_type=source_type,
        source_params=source_params,
        sort_by=sort_by,
        descending=descending,
        limit=limit,
        log_level=log_level,
    )


def order_results(
    results: list[MetricResult],
    sort_by: str = "key",
    descending: bool = False,
    limit: int | None = None,
) -> list[MetricResult]:
    """Sort and truncate results for display.

    :param results: Results in aggregation order.
    :param sort_by: "key", "percent_change" or "none" (keep first-seen order).
    :param descending: Reverse the ordering.
    :param limit: Keep only the first N results.
    :returns: New list of results.
    """
    if sort_by == "key":
        ordered = sorted(results, key=lambda r: r.key, reverse=descending)
    elif sort_by == "percent_change":
        ordered = sorted(results, key=lambda r: r.percent_change, reverse=descending)
    elif sort_by == "none":
        ordered = list(reversed(results)) if descending else list(results)
    else:
        raise ConfigError(f"Invalid sort key '{sort_by}'")

    if limit is not None:
        ordered = ordered[:limit]
    return ordered


def run_analysis(
    config: AnalysisConfig,
    source: RowSource | None = None,
    calculator: MetricCalculator | None = None,
) -> AnalysisResult:
    """Stream a row source through the aggregator and compute metrics.

    :param config: Analysis configuration.
    :param source: Row source to read; resolved from config if None.
    :param calculator: Metric calculator (default: MetricCalculator()).
    :returns: Ordered metrics plus the ingestion report.
    :raises DataSourceError: If the source cannot be read.
    """
    if source is None:
        source = resolve_row_source(config)
    calculator = calculator or MetricCalculator()

    aggregator = StreamingAggregator()
    report = aggregator.ingest_many(source.iter_records())
    extrema = aggregator.finalize()

    results = order_results(
        calculator.compute(extrema),
        sort_by=config.sort_by,
        descending=config.descending,
        limit=config.limit,
    )
    logger.info("Computed percent change for %d groups", len(extrema))

    return AnalysisResult(results=results, report=report, group_count=len(extrema))


def format_percent(value: float, decimals: int = 2) -> str:
    """Format a percent-change value, e.g. ``50.0`` -> ``"50.00%"``."""
    return f"{value:.{decimals}f}%"


def format_result(result: MetricResult, label: str = "Key") -> str:
    """Render one result as a two-line block.

    :param result: Result to render.
    :param label: Name of the grouping field (e.g. "Country").
    :returns: ``"<label>: <key>\\nPercent Change: <pct>"``, with a marker when
        the divisor was clamped.
    """
    text = f"{label}: {result.key}\nPercent Change: {format_percent(result.percent_change)}"
    if result.divisor_clamped:
        text += " (oldest value was 0; divisor clamped to 1)"
    return text
