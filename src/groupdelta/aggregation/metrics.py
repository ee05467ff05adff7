"""Percent-change metrics derived from finalized group extrema."""

from __future__ import annotations

import logging
from typing import Iterator, Mapping

from groupdelta.types import GroupExtrema, MetricResult

logger = logging.getLogger(__name__)


class MetricCalculator:
    """Compute the percent change from each group's oldest to newest value.

    A zero oldest value would divide by zero, so the divisor is clamped to 1.
    The percentage for such groups is therefore not a true percent change;
    results carry ``divisor_clamped=True`` so callers can report them.
    """

    CLAMPED_DIVISOR = 1.0

    def result_for(self, key: str, extrema: GroupExtrema) -> MetricResult:
        """Compute the metric for a single group."""
        oldest_value = extrema.oldest.value
        newest_value = extrema.newest.value

        divisor = oldest_value
        clamped = divisor == 0
        if clamped:
            logger.warning(
                "Group %s has a zero oldest value; clamping divisor to %s",
                key,
                self.CLAMPED_DIVISOR,
            )
            divisor = self.CLAMPED_DIVISOR

        return MetricResult(
            key=key,
            percent_change=(newest_value - oldest_value) / divisor * 100,
            divisor=divisor,
            divisor_clamped=clamped,
            oldest=extrema.oldest,
            newest=extrema.newest,
        )

    def iter_compute(self, mapping: Mapping[str, GroupExtrema]) -> Iterator[MetricResult]:
        """Lazily yield one :class:`MetricResult` per group, in mapping order."""
        for key, extrema in mapping.items():
            yield self.result_for(key, extrema)

    def compute(self, mapping: Mapping[str, GroupExtrema]) -> list[MetricResult]:
        """Compute one :class:`MetricResult` per group.

        :param mapping: Result of ``StreamingAggregator.finalize()``.
        :returns: Results in mapping order; empty for an empty mapping.
        """
        return list(self.iter_compute(mapping))
