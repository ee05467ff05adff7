"""CLI command implementations for groupdelta.

Each command module provides:
- Configuration loading and validation
- Command execution logic
- Integration with core library functions
"""

from groupdelta.commands.analyze import (AnalysisResult, format_percent,
                                         format_result, load_analysis_config,
                                         order_results, run_analysis)

__all__ = [
    "AnalysisResult",
    "format_percent",
    "format_result",
    "load_analysis_config",
    "order_results",
    "run_analysis",
]
