"""URL → tracked-domain classification.

Pure functions; never raise on bad input.
"""

from __future__ import annotations

from urllib.parse import urlsplit

TRACKED_SCHEMES = frozenset({"http", "https"})

_WWW_PREFIX = "www."


def strip_www(hostname: str) -> str:
    """Drop a single leading ``www.`` label."""
    if hostname.startswith(_WWW_PREFIX):
        return hostname[len(_WWW_PREFIX) :]
    return hostname


def classify(url: str | None) -> str | None:
    """Map *url* to its normalized domain, or None if it is not trackable.

    Only ``http``/``https`` URLs with a hostname qualify. Internal pages
    (``chrome://``, ``about:``, ``file:``) and unparseable input yield None.

    Examples:
        >>> classify("https://www.YouTube.com/watch?v=1")
        'youtube.com'
        >>> classify("chrome://extensions") is None
        True
    """
    if not url:
        return None
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
    except ValueError:
        return None
    if parts.scheme.lower() not in TRACKED_SCHEMES or not hostname:
        return None
    domain = strip_www(hostname.rstrip("."))
    return domain or None


def normalize_domain(raw: str) -> str | None:
    """Normalize a user-entered domain (``https://www.Reddit.com/``, ``reddit.com``).

    Returns None when *raw* does not contain a usable hostname.
    """
    text = raw.strip()
    if not text:
        return None
    if "://" not in text:
        text = f"https://{text}"
    return classify(text)
