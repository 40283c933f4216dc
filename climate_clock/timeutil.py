"""Instant helpers. An instant is an int count of milliseconds since the Unix epoch."""

import time
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_millis(dt):
    """Converts a datetime to epoch milliseconds. Naive datetimes are treated as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - EPOCH) // timedelta(milliseconds=1)


def from_millis(ms):
    return EPOCH + timedelta(milliseconds=ms)


def now_millis():
    return time.time_ns() // 1_000_000


def year_start(now_ms):
    """Returns Jan 1st 00:00 UTC of the UTC year containing now_ms."""
    year = from_millis(now_ms).year
    return to_millis(datetime(year, 1, 1, tzinfo=timezone.utc))
