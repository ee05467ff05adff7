#!/usr/bin/env python3
"""Command-line interface for groupdelta."""

from __future__ import annotations

import argparse
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from groupdelta.types import AnalysisConfig


def _config_from_args(args: argparse.Namespace) -> AnalysisConfig:
    """Build an AnalysisConfig from --csv flags, or load it from a YAML file."""
    from groupdelta.commands.analyze import load_analysis_config
    from groupdelta.exceptions import ConfigError
    from groupdelta.types import AnalysisConfig

    if args.config and args.csv:
        raise ConfigError("give either a config file or --csv, not both")

    if args.limit is not None and args.limit <= 0:
        raise ConfigError("--limit must be a positive integer")

    if args.config:
        config = load_analysis_config(args.config)
    else:
        params = {
            "file_path": args.csv,
            "key_col": args.key_col,
            "value_col": args.value_col,
            "delimiter": args.delimiter,
        }
        if args.year_col or args.month_col:
            params["year_col"] = args.year_col
            params["month_col"] = args.month_col
        else:
            params["timestamp_col"] = args.timestamp_col
            if args.timestamp_format:
                params["timestamp_format"] = args.timestamp_format
        config = AnalysisConfig(source_type="csv", source_params=params)

    overrides = {}
    if args.sort is not None:
        overrides["sort_by"] = args.sort
    if args.descending:
        overrides["descending"] = True
    if args.limit is not None:
        overrides["limit"] = args.limit
    if args.log_level is not None:
        overrides["log_level"] = args.log_level.upper()

    return config.model_copy(update=overrides) if overrides else config


def cmd_analyze(args: argparse.Namespace) -> int:
    """Compute per-group percent change between oldest and newest rows."""
    from groupdelta.commands.analyze import format_result, run_analysis
    from groupdelta.exceptions import ConfigError, DataSourceError
    from groupdelta.logging_utils import setup_logging

    if not args.config and not args.csv:
        print("Error: provide a config file or --csv FILE")
        return 1

    try:
        config = _config_from_args(args)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 1

    setup_logging(config.log_level)

    label = args.label or config.source_params.get("key_col", "Key")

    try:
        analysis = run_analysis(config)
    except (ConfigError, DataSourceError) as e:
        print(f"Analysis failed: {e}")
        return 1

    print("=" * 60)
    print("PERCENT CHANGE BY GROUP")
    print("=" * 60)

    for result in analysis.results:
        print(format_result(result, label))
        print()

    report = analysis.report
    print("-" * 60)
    print(f"Groups:    {analysis.group_count}")
    print(f"Accepted:  {report.accepted}")
    print(f"Rejected:  {len(report.rejected)}")

    if report.rejected and args.show_rejected:
        for rejected in report.rejected:
            print(f"   row {rejected.record.source_index}: {rejected.reason}")

    if analysis.clamped:
        print(
            f"Warning: {len(analysis.clamped)} group(s) had an oldest value of 0; "
            "their percent change uses a divisor of 1"
        )

    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Per-group change between the oldest and newest records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    analyze_parser = subparsers.add_parser(
        "analyze", help="Compute percent change per group"
    )
    analyze_parser.add_argument(
        "config", nargs="?", default=None, help="Path to YAML configuration file"
    )
    analyze_parser.add_argument(
        "--csv", help="Read rows from this CSV file (instead of a config file)"
    )
    analyze_parser.add_argument(
        "--key-col", default="key", help="Group key column (default: key)"
    )
    analyze_parser.add_argument(
        "--value-col", default="value", help="Value column (default: value)"
    )
    analyze_parser.add_argument(
        "--timestamp-col", default="timestamp", help="Timestamp column (default: timestamp)"
    )
    analyze_parser.add_argument(
        "--timestamp-format", help="strptime format for the timestamp column"
    )
    analyze_parser.add_argument("--year-col", help="Year column (use with --month-col)")
    analyze_parser.add_argument("--month-col", help="Month column (use with --year-col)")
    analyze_parser.add_argument(
        "--delimiter", default=",", help="CSV delimiter (default: ,)"
    )
    analyze_parser.add_argument(
        "--sort", choices=["key", "percent_change", "none"], help="Result ordering"
    )
    analyze_parser.add_argument(
        "--descending", action="store_true", help="Reverse the ordering"
    )
    analyze_parser.add_argument("--limit", type=int, help="Show only the first N groups")
    analyze_parser.add_argument("--label", help="Label for the group key in output")
    analyze_parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        type=str.lower,
        help="Logging level",
    )
    analyze_parser.add_argument(
        "--show-rejected", action="store_true", help="List rejected rows"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "analyze":
        return cmd_analyze(args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
