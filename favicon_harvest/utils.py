"""Utility helpers for URL normalization, naming and timestamps."""

from __future__ import annotations

import datetime as dt
import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
UNSAFE_HOST_PATTERN = re.compile(r"[^a-z0-9.-]")
INVALID_HOST_CHARS = re.compile(r"[\s<>\"{}|\\^`]")
DEFAULT_PORTS = {"http": 80, "https": 443}


def slugify(value: str, fallback: str = "page") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    now = dt.datetime.now(dt.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_page_url(raw: Optional[str]) -> Optional[str]:
    """Give a scheme to bare website values such as ``example.com``."""
    if not raw:
        return None
    trimmed = str(raw).strip()
    if not trimmed:
        return None
    if SCHEME_PATTERN.match(trimmed):
        return trimmed
    if trimmed.startswith("//"):
        return f"https:{trimmed}"
    return f"https://{trimmed.lstrip('/')}"


def _host_port(parts) -> Optional[str]:
    """``host[:port]`` with the host lower-cased and default ports dropped."""
    hostname = parts.hostname
    if not hostname:
        return None
    netloc = hostname if ":" not in hostname else f"[{hostname}]"
    port = parts.port
    if port is not None and port != DEFAULT_PORTS.get(parts.scheme.lower()):
        netloc = f"{netloc}:{port}"
    return netloc


def canonicalize_url(url: str) -> str:
    """Lower-case scheme and host and drop default ports, so equal URLs compare equal.

    Values that do not split cleanly are returned unchanged.
    """
    try:
        parts = urlsplit(url)
        netloc = _host_port(parts)
    except ValueError:
        return url
    if netloc is None:
        return url
    if "@" in parts.netloc:
        netloc = f"{parts.netloc.rsplit('@', 1)[0]}@{netloc}"
    return urlunsplit(
        (parts.scheme.lower(), netloc, parts.path or "/", parts.query, parts.fragment)
    )


def split_url(raw: Optional[str]):
    """Normalize and split a raw website value.

    Returns ``(hostname, canonical_url)`` or ``None`` when the value does not
    parse as a URL with a usable host.
    """
    normalized = normalize_page_url(raw)
    if not normalized:
        return None
    try:
        parts = urlsplit(normalized)
        netloc = _host_port(parts)
    except ValueError:
        return None
    hostname = parts.hostname
    if netloc is None or INVALID_HOST_CHARS.search(hostname):
        return None
    return hostname, canonicalize_url(normalized)


def sanitize_host(hostname: str) -> str:
    """Map a hostname onto the ``[a-z0-9.-]`` alphabet used for icon files."""
    return UNSAFE_HOST_PATTERN.sub("-", hostname.lower())


def origin_of(url: str) -> Optional[str]:
    """``scheme://host[:port]`` of a URL; user info is not part of an origin."""
    try:
        parts = urlsplit(url)
        netloc = _host_port(parts)
    except ValueError:
        return None
    if not parts.scheme or not netloc:
        return None
    return f"{parts.scheme.lower()}://{netloc}"


def is_http_url(value: str) -> bool:
    parts = urlsplit(value)
    return parts.scheme in ("http", "https") and bool(parts.netloc)
