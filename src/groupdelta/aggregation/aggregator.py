"""Single-pass oldest/newest aggregation per group key.

The aggregator keeps one :class:`GroupExtrema` per key in a dict, so each
ingested record costs one hash lookup plus at most two comparisons. A full run
is O(n) expected; the O(n * g) worst case only arises from adversarial key
hash collisions inside ``dict`` itself.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping

from groupdelta.exceptions import AggregatorSealedError, InvalidRecordError
from groupdelta.types import GroupExtrema, IngestReport, Record, RejectedRecord

logger = logging.getLogger(__name__)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def validate_record(record: Record) -> str | None:
    """Check a record against the ingest preconditions.

    :param record: Record to check.
    :returns: Rejection reason, or None if the record is usable.
    """
    if not record.key:
        return "missing group key"
    if record.timestamp is None or _is_nan(record.timestamp):
        return "missing timestamp"
    try:
        record.timestamp < record.timestamp
    except TypeError:
        return f"unorderable timestamp {record.timestamp!r}"
    if record.value is None or _is_nan(record.value):
        return "missing value"
    return None


class StreamingAggregator:
    """Track the oldest and newest record for every group key in one pass.

    Example usage::

        from groupdelta.aggregation import MetricCalculator, StreamingAggregator
        from groupdelta.types import Record

        aggregator = StreamingAggregator()
        report = aggregator.ingest_many(
            Record(key=country, timestamp=year, value=value)
            for country, year, value in rows
        )
        extrema = aggregator.finalize()

        for result in MetricCalculator().compute(extrema):
            print(f"{result.key}: {result.percent_change:.2f}%")

    Once :meth:`finalize` has been called the aggregator is sealed and further
    ingestion raises :class:`AggregatorSealedError`. Use a new instance per run.
    """

    def __init__(self) -> None:
        """Initialize an empty aggregator."""
        self._groups: dict[str, GroupExtrema] = {}
        self._finalized = False

    def __len__(self) -> int:
        return len(self._groups)

    def __contains__(self, key: object) -> bool:
        return key in self._groups

    @property
    def is_finalized(self) -> bool:
        """Whether :meth:`finalize` has sealed this aggregator."""
        return self._finalized

    def _ensure_open(self) -> None:
        if self._finalized:
            raise AggregatorSealedError(
                "Aggregator has been finalized; start a new StreamingAggregator"
            )

    def ingest(self, record: Record) -> None:
        """Apply one record to its group's extrema.

        A new key starts a group with ``oldest = newest = record``. For a known
        key, a strictly older record replaces ``oldest``, otherwise a strictly
        newer one replaces ``newest``. Ties and in-between timestamps leave the
        group unchanged.

        :param record: Parsed input row.
        :raises InvalidRecordError: If the record lacks a usable key, timestamp
            or value, or its timestamp cannot be compared with the group's.
        :raises AggregatorSealedError: If called after :meth:`finalize`.
        """
        self._ensure_open()

        reason = validate_record(record)
        if reason is not None:
            raise InvalidRecordError(reason, record)

        extrema = self._groups.get(record.key)
        if extrema is None:
            self._groups[record.key] = GroupExtrema.from_record(record)
            return

        try:
            changed = extrema.absorb(record)
        except TypeError as e:
            raise InvalidRecordError(
                f"timestamp {record.timestamp!r} is not comparable with "
                f"group '{record.key}': {e}",
                record,
            ) from e

        if changed:
            logger.debug(
                "Group %s extrema now %r..%r",
                record.key,
                extrema.oldest.timestamp,
                extrema.newest.timestamp,
            )

    def ingest_many(self, records: Iterable[Record]) -> IngestReport:
        """Ingest a (possibly lazy) sequence of records, skipping invalid ones.

        Invalid records are logged, collected in the report and do not stop
        the run.

        :param records: Records to ingest, consumed once.
        :returns: Counts of accepted records and the rejected ones.
        :raises AggregatorSealedError: If called after :meth:`finalize`.
        """
        self._ensure_open()

        report = IngestReport()
        for record in records:
            try:
                self.ingest(record)
            except InvalidRecordError as e:
                logger.warning(
                    "Rejected record %r: %s", record.source_index, e.reason
                )
                report.rejected.append(RejectedRecord(record=record, reason=e.reason))
            else:
                report.accepted += 1

        logger.info(
            "Ingested %d records into %d groups (%d rejected)",
            report.accepted,
            len(self._groups),
            len(report.rejected),
        )
        return report

    def merge(self, partial: Mapping[str, GroupExtrema]) -> None:
        """Fold a finalized mapping from another aggregator into this one.

        Uses the same comparison rule as :meth:`ingest`: the smaller oldest and
        the larger newest win, and on ties this aggregator's records are kept.
        The partial's :class:`GroupExtrema` objects are not mutated.

        :param partial: Mapping returned by another aggregator's :meth:`finalize`.
        :raises InvalidRecordError: If timestamps of a shared key are not comparable.
        :raises AggregatorSealedError: If called after :meth:`finalize`.
        """
        self._ensure_open()

        for key, other in partial.items():
            extrema = self._groups.get(key)
            if extrema is None:
                self._groups[key] = other.model_copy()
                continue
            try:
                extrema.merge(other)
            except TypeError as e:
                raise InvalidRecordError(
                    f"cannot merge group '{key}': {e}", other.oldest
                ) from e

    def finalize(self) -> dict[str, GroupExtrema]:
        """Seal the aggregator and return the group to extrema mapping.

        Calling this repeatedly returns equal mappings. An aggregator that
        accepted no records returns an empty mapping.

        :returns: New dict keyed by group, in first-seen order.
        """
        if not self._finalized:
            self._finalized = True
            logger.debug("Finalized aggregator with %d groups", len(self._groups))
        return dict(self._groups)


def merge_extrema(
    partials: Iterable[Mapping[str, GroupExtrema]],
) -> dict[str, GroupExtrema]:
    """Reduce per-shard mappings into one.

    Each shard is aggregated by its own :class:`StreamingAggregator`; the
    finalized mappings are combined here. The reduction is associative and,
    up to which record wins an exact timestamp tie, commutative.

    :param partials: Finalized mappings, one per shard.
    :returns: Combined mapping. Input mappings are left untouched.
    :raises InvalidRecordError: If timestamps of a shared key are not comparable.
    """
    combined = StreamingAggregator()
    for partial in partials:
        combined.merge(partial)
    return combined.finalize()
