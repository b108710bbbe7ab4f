"""Event date normalization.

The model is told to copy year-less dates as written rather than guess a
year. Here those dates get a year relative to an explicit ``now``:

    now=2024-06-01, "August 16"  ->  2024-08-16T00:00:00
    now=2024-10-01, "August 16"  ->  2025-08-16T00:00:00

Comparison is by calendar day, so an event earlier today is not rolled over.
Dates that state a year are never moved.
"""

from datetime import datetime
from typing import Optional

from dateutil import parser as dateutil_parser

# Two leap-year defaults that differ in year, month and day: a field dateutil
# fills from the default differs between the probes, so the text had none.
_PROBE_A = datetime(2000, 1, 1)
_PROBE_B = datetime(2004, 2, 2)

# Feb 29 is the only date that can be invalid in a year; eight years always
# contain a leap year.
_MAX_YEAR_SEARCH = 8

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _parse_with_default(value: str, default: datetime) -> Optional[datetime]:
    try:
        return dateutil_parser.parse(value, default=default)
    except (ValueError, OverflowError):
        return None


def parse_partial_date(value: Optional[str]) -> Optional[tuple[datetime, bool]]:
    """Parse *value* and report whether it carried an explicit year.

    Returns ``(parsed, has_year)``, or None when the text is not a date or
    lacks a month or day ("Monday", "10:00"). For a year-less date the
    returned year is a placeholder and must be replaced.
    """
    if not value or not value.strip():
        return None
    first = _parse_with_default(value, _PROBE_A)
    second = _parse_with_default(value, _PROBE_B)
    if first is None or second is None:
        return None
    if (first.month, first.day) != (second.month, second.day):
        return None
    return first, first.year == second.year


def _with_inferred_year(parsed: datetime, reference: datetime) -> Optional[datetime]:
    """First year from *reference*'s on which *parsed* falls on or after it."""
    for year in range(reference.year, reference.year + _MAX_YEAR_SEARCH + 1):
        try:
            candidate = parsed.replace(year=year)
        except ValueError:
            continue
        if candidate.date() >= reference.date():
            return candidate
    return None


def infer_event_date(
    value: Optional[str],
    now: datetime,
    not_before: Optional[datetime] = None,
) -> Optional[datetime]:
    """Resolve an event date string to a datetime.

    Year-less dates are placed in ``now``'s year, or rolled forward when that
    day has already passed. ``not_before`` replaces ``now`` as the reference,
    which lets an end date be resolved relative to its start date.
    """
    parsed = parse_partial_date(value)
    if parsed is None:
        return None
    dt, has_year = parsed
    if has_year:
        return dt
    return _with_inferred_year(dt, not_before or now)


def format_event_date(dt: datetime) -> str:
    if dt.tzinfo is None:
        return dt.strftime(ISO_FORMAT)
    return dt.isoformat(timespec="seconds")


def normalize_event_date(
    value: Optional[str],
    now: datetime,
    not_before: Optional[datetime] = None,
) -> str:
    """ISO form of an event date, or "" when it cannot be read as a date."""
    dt = infer_event_date(value, now, not_before=not_before)
    return format_event_date(dt) if dt is not None else ""


def parse_stored_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a date that was already normalized on save."""
    if not value:
        return None
    try:
        return dateutil_parser.isoparse(value)
    except (ValueError, OverflowError):
        return _parse_with_default(value, _PROBE_A)
