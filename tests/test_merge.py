"""Tests for merging per-shard aggregations."""

import itertools

import pytest

from groupdelta.aggregation import StreamingAggregator, merge_extrema
from groupdelta.exceptions import AggregatorSealedError, InvalidRecordError
from groupdelta.types import Record


def _aggregate(records: list[Record]):
    aggregator = StreamingAggregator()
    for record in records:
        aggregator.ingest(record)
    return aggregator.finalize()


def _summary(mapping) -> dict:
    return {
        key: (e.oldest.timestamp, e.newest.timestamp, e.count)
        for key, e in mapping.items()
    }


@pytest.fixture
def records() -> list[Record]:
    """Rows for three groups with distinct timestamps per group."""
    rows = [
        ("A", 2004), ("B", 1990), ("A", 2001), ("C", 2015), ("B", 1985),
        ("A", 2009), ("C", 2011), ("B", 1999), ("A", 2006), ("C", 2020),
    ]
    return [
        Record(key=k, timestamp=ts, value=float(i), source_index=i)
        for i, (k, ts) in enumerate(rows)
    ]


class TestMergeExtrema:
    """merge_extrema reduction."""

    def test_sharded_equals_single_pass(self, records: list[Record]) -> None:
        """Merging shard results equals aggregating everything at once."""
        shards = [records[0:3], records[3:7], records[7:]]
        merged = merge_extrema(_aggregate(shard) for shard in shards)

        assert _summary(merged) == _summary(_aggregate(records))

    def test_merge_is_commutative(self, records: list[Record]) -> None:
        """Shard order does not change the merged extrema."""
        partials = [_aggregate(records[0:4]), _aggregate(records[4:8]), _aggregate(records[8:])]
        expected = _summary(merge_extrema(partials))

        for order in itertools.permutations(partials):
            assert _summary(merge_extrema(order)) == expected

    def test_merge_is_associative(self, records: list[Record]) -> None:
        """Grouping of the reduction does not matter."""
        p1, p2, p3 = (_aggregate(records[0:4]), _aggregate(records[4:8]),
                      _aggregate(records[8:]))

        left = merge_extrema([merge_extrema([p1, p2]), p3])
        right = merge_extrema([p1, merge_extrema([p2, p3])])

        assert _summary(left) == _summary(right)

    def test_inputs_are_not_mutated(self, records: list[Record]) -> None:
        """Merging leaves the partial mappings untouched."""
        p1 = _aggregate(records[:5])
        p2 = _aggregate(records[5:])
        before = _summary(p1), _summary(p2)

        merge_extrema([p1, p2])

        assert (_summary(p1), _summary(p2)) == before

    def test_merged_extrema_reference_original_records(self, records: list[Record]) -> None:
        """Merged extrema point at the ingested records."""
        merged = merge_extrema([_aggregate(records[:5]), _aggregate(records[5:])])

        assert merged["A"].oldest is records[2]
        assert merged["A"].newest is records[5]

    def test_empty_partials(self) -> None:
        """Merging nothing yields an empty mapping."""
        assert merge_extrema([]) == {}
        assert merge_extrema([{}, {}]) == {}

    def test_incomparable_shards_raise(self) -> None:
        """Shards with incomparable timestamps for a key cannot merge."""
        p1 = _aggregate([Record(key="A", timestamp=2000, value=1.0)])
        p2 = _aggregate([Record(key="A", timestamp="2000", value=1.0)])

        with pytest.raises(InvalidRecordError, match="cannot merge group 'A'"):
            merge_extrema([p1, p2])


def test_aggregator_merge_into_sealed_raises() -> None:
    """A finalized aggregator cannot absorb another partial."""
    aggregator = StreamingAggregator()
    aggregator.finalize()

    with pytest.raises(AggregatorSealedError):
        aggregator.merge({})


def test_aggregator_merge_then_ingest() -> None:
    """An aggregator can keep ingesting after merging a partial."""
    aggregator = StreamingAggregator()
    aggregator.merge(_aggregate([Record(key="A", timestamp=2000, value=1.0)]))
    aggregator.ingest(Record(key="A", timestamp=2010, value=2.0))

    extrema = aggregator.finalize()["A"]
    assert (extrema.oldest.timestamp, extrema.newest.timestamp) == (2000, 2010)
    assert extrema.count == 2
