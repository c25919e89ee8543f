"""HTML parsing helpers: icon markup discovery and plain-text extraction."""

from __future__ import annotations

import ipaddress
import re
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from .models import CandidateRef
from .utils import canonicalize_url, is_http_url, origin_of

FALLBACK_ICON_PATHS = (
    "/favicon.ico",
    "/favicon.png",
    "/favicon-32x32.png",
    "/favicon-196x196.png",
    "/favicon-512x512.png",
    "/apple-touch-icon.png",
    "/android-chrome-192x192.png",
    "/android-chrome-512x512.png",
)

_META_PROPERTIES = {"og:image"}
_META_NAMES = {"msapplication-tileimage"}
_WHITESPACE = re.compile(r"\s+")


def _attr_text(tag: Tag, name: str) -> Optional[str]:
    """Return an attribute as a string; bs4 hands multi-valued ones back as lists."""
    value = tag.get(name)
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def _resolve(raw: Optional[str], base_url: str) -> Optional[str]:
    if not raw:
        return None
    raw = raw.strip()
    if not raw or raw.startswith("data:"):
        return None
    resolved = urljoin(base_url, raw)
    return canonicalize_url(resolved) if is_http_url(resolved) else None


def _is_icon_meta(tag: Tag) -> bool:
    prop = (_attr_text(tag, "property") or "").strip().lower()
    name = (_attr_text(tag, "name") or "").strip().lower()
    return prop in _META_PROPERTIES or name in _META_NAMES


def extract_icon_candidates(html: str, page_url: str) -> List[CandidateRef]:
    """Collect icon ``<link>`` and ``<meta>`` references in document order."""
    soup = BeautifulSoup(html, "html.parser")
    candidates: List[CandidateRef] = []
    for tag in soup.find_all(["link", "meta"]):
        if tag.name == "link":
            rel = (_attr_text(tag, "rel") or "").lower()
            if "icon" not in rel:
                continue
            url = _resolve(_attr_text(tag, "href"), page_url)
            if url:
                candidates.append(
                    CandidateRef(url=url, type="link", rel=rel, sizes=_attr_text(tag, "sizes"))
                )
        elif _is_icon_meta(tag):
            url = _resolve(_attr_text(tag, "content"), page_url)
            if url:
                candidates.append(CandidateRef(url=url, type="meta"))
    return candidates


def fallback_candidates(page_url: str) -> List[CandidateRef]:
    """Conventional icon locations at the root of the page's origin."""
    origin = origin_of(page_url)
    if not origin:
        return []
    return [
        CandidateRef(url=urljoin(origin, path), type="fallback")
        for path in FALLBACK_ICON_PATHS
    ]


def _is_ip_address(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


def alternate_origin_candidates(page_url: str) -> List[CandidateRef]:
    """``/favicon.ico`` on the ``www.`` host and over plain HTTP.

    Tried after every other candidate, for sites that only serve icons from
    their ``www`` host or without TLS. Pages on an explicit port or an IP
    address get none.
    """
    parts = urlsplit(page_url)
    hostname = parts.hostname
    try:
        port = parts.port
    except ValueError:
        return []
    if not hostname or port is not None or _is_ip_address(hostname):
        return []
    hosts = [hostname]
    if not hostname.startswith("www."):
        hosts.append(f"www.{hostname}")
    own_origin = origin_of(page_url)
    candidates = []
    for scheme in ("https", "http"):
        for host in hosts:
            origin = f"{scheme}://{host}"
            if origin != own_origin:
                candidates.append(CandidateRef(url=f"{origin}/favicon.ico", type="fallback"))
    return candidates


def merge_candidates(*groups: Iterable[CandidateRef]) -> List[CandidateRef]:
    """Concatenate candidate groups, keeping the first occurrence of each URL."""
    seen = set()
    merged: List[CandidateRef] = []
    for group in groups:
        for candidate in group:
            key = canonicalize_url(candidate.url)
            if key in seen:
                continue
            seen.add(key)
            merged.append(candidate)
    return merged


def extract_page_text(html: str) -> str:
    """Visible body text with scripts and styles removed."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    root = soup.body or soup
    return _WHITESPACE.sub(" ", root.get_text(" ")).strip()
