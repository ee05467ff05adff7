"""Streaming aggregation and metric computation module."""

from groupdelta.aggregation.aggregator import (StreamingAggregator,
                                               merge_extrema, validate_record)
from groupdelta.aggregation.metrics import MetricCalculator

__all__ = [
    "StreamingAggregator",
    "MetricCalculator",
    "merge_extrema",
    "validate_record",
]
