"""Scrape landing pages for icon candidates with a bounded pool of workers."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Mapping, Optional, Sequence
from urllib.parse import urljoin

import requests

from .config import HarvestConfig
from .content import (
    alternate_origin_candidates,
    extract_icon_candidates,
    fallback_candidates,
    merge_candidates,
)
from .fetch import MAX_PAGE_BYTES, build_session, decode_body, http_get
from .models import CandidateRef, Manifest, ManifestEntry, NormalizedHost
from .utils import canonicalize_url, utc_timestamp

logger = logging.getLogger("favicon_harvest")

SessionFactory = Callable[[], requests.Session]


def override_candidates(
    hostname: str, base_url: str, overrides: Mapping[str, str]
) -> List[CandidateRef]:
    url = overrides.get(hostname)
    if not url:
        return []
    return [CandidateRef(url=canonicalize_url(urljoin(base_url, url.strip())), type="override")]


def fetch_page_html(session: requests.Session, url: str, timeout: float) -> str:
    """GET a page and return its body; non-2xx statuses raise ``HTTPError``."""
    resp, body = http_get(session, url, timeout, MAX_PAGE_BYTES)
    resp.raise_for_status()
    if not 200 <= resp.status_code < 300:
        raise requests.HTTPError(f"HTTP {resp.status_code}", response=resp)
    return decode_body(resp, body)


def scrape_host(
    host: NormalizedHost,
    session: requests.Session,
    overrides: Mapping[str, str],
    timeout: float,
) -> ManifestEntry:
    """Build the ordered, deduplicated candidate list for one host.

    A failed fetch or parse is recorded in ``errors`` and the host still gets
    its fallback candidates.
    """
    entry = ManifestEntry(
        hostname=host.hostname,
        page_url=host.page_url,
        sources=list(host.sources),
        scraped_at=utc_timestamp(),
    )
    discovered: List[CandidateRef] = []
    try:
        html = fetch_page_html(session, host.page_url, timeout)
        discovered = extract_icon_candidates(html, host.page_url)
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Could not scrape %s: %s", host.page_url, exc)
        entry.errors.append(str(exc))

    entry.candidates = merge_candidates(
        override_candidates(host.hostname, host.page_url, overrides),
        discovered,
        fallback_candidates(host.page_url),
        alternate_origin_candidates(host.page_url),
    )
    logger.debug("%s: %d candidates", host.hostname, len(entry.candidates))
    return entry


def _failed_entry(host: NormalizedHost, exc: BaseException) -> ManifestEntry:
    return ManifestEntry(
        hostname=host.hostname,
        page_url=host.page_url,
        sources=list(host.sources),
        scraped_at=utc_timestamp(),
        errors=[str(exc) or exc.__class__.__name__],
    )


async def scrape_hosts(
    hosts: Sequence[NormalizedHost],
    config: HarvestConfig,
    overrides: Optional[Mapping[str, str]] = None,
    session_factory: Optional[SessionFactory] = None,
) -> Manifest:
    """Scrape every host with at most ``config.concurrency`` requests in flight.

    Workers share an index cursor and write into a pre-sized result list, so
    manifest order always matches ``hosts``. Each worker's blocking fetches
    run on a thread pool sized to the worker count.
    """
    overrides = overrides or {}
    if session_factory is None:

        def session_factory() -> requests.Session:
            return build_session(config.scraper_user_agent)

    results: List[Optional[ManifestEntry]] = [None] * len(hosts)
    cursor = 0

    loop = asyncio.get_running_loop()
    width = max(1, min(config.concurrency, len(hosts)))
    executor = ThreadPoolExecutor(max_workers=width, thread_name_prefix="scrape")

    async def worker() -> None:
        nonlocal cursor
        session = session_factory()
        try:
            while cursor < len(hosts):
                current = cursor
                cursor += 1
                host = hosts[current]
                try:
                    results[current] = await loop.run_in_executor(
                        executor, scrape_host, host, session, overrides, config.timeout
                    )
                except Exception as exc:  # pylint: disable=broad-except
                    logger.exception("Unexpected error scraping %s", host.hostname)
                    results[current] = _failed_entry(host, exc)
        finally:
            session.close()

    logger.info("Scraping %d host pages with concurrency %d...", len(hosts), width)
    try:
        if hosts:
            await asyncio.gather(*(worker() for _ in range(width)))
    finally:
        executor.shutdown(wait=True)

    return Manifest(
        generated_at=utc_timestamp(),
        total_hosts=len(hosts),
        entries=[entry for entry in results if entry is not None],
    )
