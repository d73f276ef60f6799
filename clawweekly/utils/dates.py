"""Date and week utilities.

Issues are numbered from a fixed epoch Monday. Every consumer of a week
number (the fetcher and the sidebar/homepage rebuild) goes through
``get_week_period`` so that the month an issue is filed under never drifts
between runs.
"""

import re
from datetime import datetime, timedelta, tzinfo
from typing import Tuple, Union

import pytz
from dateutil.parser import parse

from ..models import Period

# Issue 1 starts on Monday 2025-12-29 (UTC).
EPOCH = datetime(2025, 12, 29, tzinfo=pytz.utc)
WEEK_LENGTH = timedelta(days=7)
TIME_UNIT = timedelta(milliseconds=1)

DEFAULT_TIMEZONE = "Asia/Shanghai"

MONTH_BUCKET_RE = re.compile(r"^(\d{4})年(\d{1,2})月$")

TimezoneLike = Union[str, tzinfo, None]


def get_week_period(week: int) -> Period:
    """Get the inclusive start and end of the given issue number."""
    if week < 1:
        raise ValueError(f"Week index must be >= 1, got: {week}")
    start = EPOCH + (week - 1) * WEEK_LENGTH
    end = start + WEEK_LENGTH - TIME_UNIT
    return Period(week=week, start=start, end=end)


def resolve_timezone(tz: TimezoneLike):
    """Turn a timezone name into a tzinfo, defaulting to the display timezone."""
    if tz is None:
        return pytz.timezone(DEFAULT_TIMEZONE)
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz


def localize(dt: datetime, tz: TimezoneLike = None) -> datetime:
    return dt.astimezone(resolve_timezone(tz))


def format_date_cn(dt: datetime, tz: TimezoneLike = None) -> str:
    """Format a date as e.g. 2026年1月5日."""
    local = localize(dt, tz)
    return f"{local.year}年{local.month}月{local.day}日"


def format_date_range(start: datetime, end: datetime, tz: TimezoneLike = None) -> str:
    return f"{format_date_cn(start, tz)}-{format_date_cn(end, tz)}"


def format_short_date(dt: Union[datetime, str], tz: TimezoneLike = None) -> str:
    """Format a date as e.g. 2026/1/5."""
    if isinstance(dt, str):
        dt = parse(dt)
    local = localize(dt, tz)
    return f"{local.year}/{local.month}/{local.day}"


def to_search_date(dt: datetime) -> str:
    """UTC calendar date used in GitHub search qualifiers."""
    return dt.astimezone(pytz.utc).strftime("%Y-%m-%d")


def month_bucket(dt: datetime, tz: TimezoneLike = None) -> str:
    """Month heading an issue is grouped under, e.g. 2026年1月."""
    local = localize(dt, tz)
    return f"{local.year}年{local.month}月"


def parse_month_bucket(text: str) -> Tuple[int, int]:
    """Parse a month heading back into (year, month) for sorting."""
    match = MONTH_BUCKET_RE.match(text.strip())
    if not match:
        raise ValueError(f"Not a month heading: {text!r}")
    return int(match.group(1)), int(match.group(2))


def is_in_period(timestamp_str: str, period: Period) -> bool:
    """Check if the timestamp falls within the period, bounds included."""
    timestamp = parse(timestamp_str)
    if timestamp.tzinfo is None:
        timestamp = pytz.utc.localize(timestamp)
    return period.start <= timestamp <= period.end
