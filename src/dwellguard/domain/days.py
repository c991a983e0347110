"""Calendar-day helpers and ``usage_YYYY_MM_DD`` storage keys.

Keys are parsed strictly from the three numeric components actually
present; anything else is reported as unparseable (None), never guessed.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta

USAGE_KEY_PREFIX = "usage_"

_USAGE_KEY_RE = re.compile(r"^usage_(\d{4})_(\d{2})_(\d{2})$")


def usage_key(day: date) -> str:
    """Storage key holding the ledger for *day*."""
    return f"{USAGE_KEY_PREFIX}{day.year:04d}_{day.month:02d}_{day.day:02d}"


def parse_usage_key(key: str) -> date | None:
    """Extract the date from a usage key, or None if malformed.

    Examples:
        >>> parse_usage_key("usage_2024_03_09")
        datetime.date(2024, 3, 9)
        >>> parse_usage_key("usage_2024_13_01") is None
        True
    """
    match = _USAGE_KEY_RE.match(key)
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def retention_cutoff(today: date, retention_days: int) -> date:
    """Oldest day that is still retained."""
    return today - timedelta(days=retention_days)


def is_expired(day: date, today: date, retention_days: int) -> bool:
    """True if *day* is strictly older than the retention horizon."""
    return day < retention_cutoff(today, retention_days)


def to_epoch_ms(moment: datetime) -> int:
    """Convert a datetime (naive = local time) to epoch milliseconds."""
    return int(moment.timestamp() * 1000)


def local_day_of(epoch_ms: int) -> date:
    """Local calendar day containing *epoch_ms*."""
    return datetime.fromtimestamp(epoch_ms / 1000).date()
