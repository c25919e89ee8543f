"""Icon downloading with ordered candidate fallback."""

from __future__ import annotations

import dataclasses
import logging
import re
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import urlsplit

import requests
from filetype import guess

from .config import IMAGE_ACCEPT, HarvestConfig
from .fetch import MAX_IMAGE_BYTES, build_session, http_get
from .models import DownloadResult, DownloadSummary, Manifest, ManifestEntry
from .scraper import override_candidates
from .utils import canonicalize_url, sanitize_host, utc_timestamp

logger = logging.getLogger("favicon_harvest")

ALLOWED_EXTENSIONS = (".png", ".ico", ".jpg", ".jpeg", ".svg", ".webp")
CONTENT_TYPE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/svg+xml": ".svg",
    "image/webp": ".webp",
    "image/x-icon": ".ico",
    "image/vnd.microsoft.icon": ".ico",
}
_PATH_EXTENSION = re.compile(r"\.(png|ico|jpg|jpeg|svg|webp)$")


def detect_image_extension(data: bytes) -> Optional[str]:
    """Detect an allowed image type from the file signature."""
    kind = guess(data) if data else None
    if kind and kind.mime.startswith("image/"):
        ext = "." + kind.extension.lower()
        if ext in ALLOWED_EXTENSIONS:
            return ext
    return None


def pick_extension(url: str, content_type: Optional[str], data: bytes = b"") -> str:
    """Choose a file extension from the content type, the URL, then the bytes."""
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type in CONTENT_TYPE_EXTENSIONS:
        return CONTENT_TYPE_EXTENSIONS[media_type]
    match = _PATH_EXTENSION.search(urlsplit(url).path.lower())
    if match:
        return f".{match.group(1)}"
    return detect_image_extension(data) or ".ico"


def find_existing_file(output_dir: Path, safe_host: str) -> Optional[str]:
    for ext in ALLOWED_EXTENSIONS:
        candidate = output_dir / f"{safe_host}{ext}"
        if candidate.exists():
            return candidate.name
    return None


def with_override(entry: ManifestEntry, overrides: Mapping[str, str]) -> ManifestEntry:
    """Return a copy of ``entry`` whose candidates start with its override.

    Overrides are applied again here so that ones added after scraping still
    take effect.
    """
    extra = override_candidates(entry.hostname, entry.page_url, overrides)
    if not extra:
        return entry
    rest = [
        candidate
        for candidate in entry.candidates
        if canonicalize_url(candidate.url) != extra[0].url
    ]
    return dataclasses.replace(entry, candidates=extra + rest)


def download_entry(
    entry: ManifestEntry,
    session: requests.Session,
    output_dir: Path,
    overrides: Optional[Mapping[str, str]] = None,
    timeout: float = 15.0,
    refresh: bool = False,
) -> DownloadResult:
    """Try each candidate in order and keep the first valid image."""
    entry = with_override(entry, overrides or {})
    if not entry.candidates:
        return DownloadResult(status="no-candidates", checked_at=utc_timestamp())

    safe_host = sanitize_host(entry.hostname or "unknown")
    existing = find_existing_file(output_dir, safe_host)
    if existing and not refresh:
        return DownloadResult(status="exists", checked_at=utc_timestamp(), file=existing)

    for candidate in entry.candidates:
        try:
            resp, data = http_get(session, candidate.url, timeout, MAX_IMAGE_BYTES)
            if not 200 <= resp.status_code < 300:
                logger.debug("%s: HTTP %s", candidate.url, resp.status_code)
                continue
            content_type = resp.headers.get("Content-Type", "")
            if not content_type.lower().startswith("image/"):
                logger.debug("%s: not an image (Content-Type=%s)", candidate.url, content_type)
                continue
            filename = f"{safe_host}{pick_extension(candidate.url, content_type, data)}"
            output_dir.mkdir(parents=True, exist_ok=True)
            (output_dir / filename).write_bytes(data)
        except (requests.RequestException, OSError) as exc:
            logger.debug("Failed to fetch icon %s: %s", candidate.url, exc)
            continue

        if existing and existing != filename:
            (output_dir / existing).unlink(missing_ok=True)
        logger.info("Saved %s (%s)", filename, content_type)
        return DownloadResult(
            status="updated" if existing else "success",
            checked_at=utc_timestamp(),
            file=filename,
            url=candidate.url,
            source=candidate.type,
            content_type=content_type,
        )

    logger.warning("Failed to fetch favicon for %s", entry.hostname)
    return DownloadResult(status="failed", checked_at=utc_timestamp())


def download_manifest(
    manifest: Manifest,
    config: HarvestConfig,
    overrides: Optional[Mapping[str, str]] = None,
    session: Optional[requests.Session] = None,
) -> Manifest:
    """Download icons for every manifest entry, one host at a time.

    Returns a new manifest carrying per-entry results and batch counters; the
    input manifest is left untouched.
    """
    owns_session = session is None
    if session is None:
        session = build_session(config.downloader_user_agent, accept=IMAGE_ACCEPT)

    summary = DownloadSummary()
    entries = []
    try:
        for entry in manifest.entries:
            result = download_entry(
                entry,
                session,
                config.output_dir,
                overrides=overrides,
                timeout=config.timeout,
                refresh=config.refresh,
            )
            summary.record(result)
            entries.append(dataclasses.replace(entry, download=result))
    finally:
        if owns_session:
            session.close()

    logger.info(
        "Download summary: downloaded %d, skipped %d, failed %d",
        summary.downloaded,
        summary.skipped,
        summary.failed,
    )
    return dataclasses.replace(
        manifest,
        entries=entries,
        downloaded_at=utc_timestamp(),
        summary=summary,
    )
