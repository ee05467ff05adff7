"""Timestamp parsing helpers for row sources.

Every helper returns a timezone-aware UTC :class:`datetime` so that timestamps
from one source always compare with each other, or ``None`` when the input
cannot be parsed. Rejecting ``None`` timestamps is the aggregator's job.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

MONTHS = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

# "jan" -> 1, "january" -> 1, "sept" -> 9
_MONTH_LOOKUP: dict[str, int] = {}
for _index, _name in enumerate(MONTHS, start=1):
    _MONTH_LOOKUP[_name] = _index
    _MONTH_LOOKUP[_name[:3]] = _index
_MONTH_LOOKUP["sept"] = 9


def _to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_month(value: Any) -> int | None:
    """Parse a month given as a number (1-12) or an English name/abbreviation.

    :param value: ``3``, ``"3"``, ``"Mar"`` or ``"March"``.
    :returns: Month number, or None if not recognised.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if 1 <= value <= 12 else None
    if isinstance(value, float):
        return parse_month(int(value)) if value.is_integer() else None

    text = str(value).strip().lower().rstrip(".")
    if not text:
        return None
    if text.isdigit():
        return parse_month(int(text))
    return _MONTH_LOOKUP.get(text)


def parse_year(value: Any) -> int | None:
    """Parse a four-digit-ish year from an int, float or string cell."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        year = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        year = int(value)
    else:
        text = str(value).strip()
        if not text.isdigit():
            return None
        year = int(text)
    return year if 1 <= year <= 9999 else None


def parse_period(year: Any, month: Any) -> datetime | None:
    """Combine a year and a month field into the first instant of that month.

    :param year: Year cell, e.g. ``2010`` or ``"2010"``.
    :param month: Month cell, e.g. ``"March"``, ``"Mar"`` or ``3``.
    :returns: UTC datetime at the start of the month, or None if either part
        cannot be parsed.
    """
    year_num = parse_year(year)
    month_num = parse_month(month)
    if year_num is None or month_num is None:
        return None
    return datetime(year_num, month_num, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Any, fmt: str | None = None) -> datetime | None:
    """Parse a single timestamp cell.

    Accepts datetime/date objects, bare years (``"2010"``), ISO dates and ISO
    datetimes (a trailing ``Z`` is understood), or any ``strptime`` format when
    ``fmt`` is given.

    :param value: Cell content.
    :param fmt: Optional ``strptime`` format.
    :returns: Timezone-aware UTC datetime, or None if parsing fails.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _to_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    text = str(value).strip()
    if not text:
        return None

    if fmt:
        try:
            return _to_utc(datetime.strptime(text, fmt))
        except ValueError:
            return None

    year = parse_year(text)
    if year is not None:
        return datetime(year, 1, 1, tzinfo=timezone.utc)

    try:
        return _to_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        return None
