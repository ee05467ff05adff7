"""groupdelta package root."""

from groupdelta.aggregation import (MetricCalculator, StreamingAggregator,
                                    merge_extrema)
from groupdelta.exceptions import (AggregatorSealedError, GroupDeltaError,
                                   InvalidRecordError)
from groupdelta.types import GroupExtrema, MetricResult, Record

__all__ = [
    "StreamingAggregator",
    "MetricCalculator",
    "merge_extrema",
    "Record",
    "GroupExtrema",
    "MetricResult",
    "GroupDeltaError",
    "InvalidRecordError",
    "AggregatorSealedError",
]
