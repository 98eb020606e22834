"""Slugs and restaurant identifiers."""

import re
from urllib.parse import parse_qs, urlsplit

SLUG_MAX_LENGTH = 80

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(value: str | None) -> str:
    """Derive a URL-safe identifier from a display name.

    Args:
        value: Display name

    Returns:
        Slug such as "starters-and-sides", or "untitled" if nothing remains
    """
    text = str(value or "").strip().lower().replace("&", "and")
    text = _NON_SLUG_CHARS.sub("-", text).strip("-")
    return text[:SLUG_MAX_LENGTH] or "untitled"


def restaurant_id_from_url(url: str, default: str) -> str:
    """Extract the restaurant identifier a QR code points at.

    Priority: ``r`` or ``restaurant`` query parameter, then the URL
    fragment, then the second path segment (the first one is the site
    sub-path on static hosts), then ``default``.

    Args:
        url: Full or relative menu URL
        default: Identifier used when the URL carries none

    Returns:
        The restaurant identifier
    """
    parts = urlsplit(url.strip())
    query = parse_qs(parts.query)

    for key in ("r", "restaurant"):
        value = (query.get(key) or [""])[0].strip()
        if value:
            return value

    fragment = parts.fragment.strip()
    if fragment:
        return fragment

    segments = [segment for segment in parts.path.split("/") if segment]
    if len(segments) >= 2 and segments[1] != "index.html":
        return segments[1]

    return default
