"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import date, datetime


def iso_day(day: date) -> str:
    """A date as YYYY-MM-DD."""
    return day.isoformat()


def parse_iso_day(text: str | None) -> date | None:
    """Inverse of :func:`iso_day`; None for missing or malformed input."""
    if not isinstance(text, str):
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def iso_from_ms(epoch_ms: int) -> str:
    """Epoch milliseconds as local ISO 8601 (seconds precision)."""
    return datetime.fromtimestamp(epoch_ms / 1000).isoformat(timespec="seconds")


def format_duration(seconds: int) -> str:
    """Compact human duration.

    Examples:
        >>> format_duration(45)
        '45s'
        >>> format_duration(125)
        '2m 5s'
        >>> format_duration(3900)
        '1h 5m'
    """
    seconds = max(0, int(seconds))
    if seconds < 60:
        return f"{seconds}s"
    minutes, secs = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"
