"""Tests for timestamp parsing helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from groupdelta.data.periods import (parse_month, parse_period,
                                     parse_timestamp, parse_year)


class TestParseMonth:
    """Tests for month parsing."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("January", 1),
            ("jan", 1),
            ("Sept", 9),
            ("  December ", 12),
            ("Mar.", 3),
            ("3", 3),
            (3, 3),
            (12.0, 12),
        ],
    )
    def test_valid_months(self, value, expected: int) -> None:
        """Names, abbreviations and numbers are recognised."""
        assert parse_month(value) == expected

    @pytest.mark.parametrize("value", ["", "Smarch", "13", 0, 2.5, None, True])
    def test_invalid_months(self, value) -> None:
        """Unknown months return None."""
        assert parse_month(value) is None


class TestParseYear:
    """Tests for year parsing."""

    def test_valid_years(self) -> None:
        """Ints, integral floats and digit strings are years."""
        assert parse_year(2010) == 2010
        assert parse_year(2010.0) == 2010
        assert parse_year(" 2010 ") == 2010

    def test_invalid_years(self) -> None:
        """Non-numeric or out-of-range years return None."""
        assert parse_year("twenty") is None
        assert parse_year(2010.5) is None
        assert parse_year(0) is None
        assert parse_year(None) is None


class TestParsePeriod:
    """Tests for year + month periods."""

    def test_year_and_month_name(self) -> None:
        """Year and month name combine to the first of the month in UTC."""
        assert parse_period("2010", "March") == datetime(2010, 3, 1, tzinfo=timezone.utc)

    def test_periods_order_chronologically(self) -> None:
        """Parsed periods compare in calendar order, not alphabetically."""
        assert parse_period(2010, "March") < parse_period(2010, "April")
        assert parse_period(2009, "December") < parse_period(2010, "January")

    def test_invalid_part_returns_none(self) -> None:
        """Either part failing yields None."""
        assert parse_period("2010", "Smarch") is None
        assert parse_period("", "March") is None


class TestParseTimestamp:
    """Tests for single-cell timestamp parsing."""

    def test_iso_date(self) -> None:
        """ISO dates parse to UTC midnight."""
        assert parse_timestamp("2024-01-15") == datetime(2024, 1, 15, tzinfo=timezone.utc)

    def test_iso_datetime_with_z(self) -> None:
        """A trailing Z is treated as UTC."""
        assert parse_timestamp("2024-01-15T10:30:00Z") == datetime(
            2024, 1, 15, 10, 30, tzinfo=timezone.utc
        )

    def test_offset_converted_to_utc(self) -> None:
        """Offsets are normalised to UTC."""
        result = parse_timestamp("2024-01-15T10:30:00+02:00")
        assert result == datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_bare_year(self) -> None:
        """A bare year means January 1st."""
        assert parse_timestamp("2010") == datetime(2010, 1, 1, tzinfo=timezone.utc)
        assert parse_timestamp(2010) == datetime(2010, 1, 1, tzinfo=timezone.utc)

    def test_custom_format(self) -> None:
        """A strptime format is honoured."""
        assert parse_timestamp("15/01/2024", "%d/%m/%Y") == datetime(
            2024, 1, 15, tzinfo=timezone.utc
        )

    def test_custom_format_mismatch_returns_none(self) -> None:
        """A value not matching the format yields None."""
        assert parse_timestamp("2024-01-15", "%d/%m/%Y") is None

    def test_date_and_datetime_objects(self) -> None:
        """date and datetime objects pass through as UTC datetimes."""
        assert parse_timestamp(date(2024, 1, 15)) == datetime(2024, 1, 15, tzinfo=timezone.utc)
        naive = datetime(2024, 1, 15, 9, 0)
        assert parse_timestamp(naive).tzinfo == timezone.utc

    @pytest.mark.parametrize("value", [None, "", "   ", "not-a-date"])
    def test_unparseable_returns_none(self, value) -> None:
        """Unparseable cells return None."""
        assert parse_timestamp(value) is None
