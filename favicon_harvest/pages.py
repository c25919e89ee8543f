"""Save a page's HTML and visible text for manual research."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import requests
from playwright.async_api import Error as PlaywrightError, async_playwright

from .config import DEFAULT_TIMEOUT, PAGE_ACCEPT, SCRAPER_USER_AGENT
from .content import extract_page_text
from .fetch import MAX_PAGE_BYTES, build_session, decode_body, http_get
from .utils import slugify

logger = logging.getLogger("favicon_harvest")

PREVIEW_CHARS = 400
_SCHEME_PREFIX = re.compile(r"^https?://", re.IGNORECASE)


class PageFetchError(RuntimeError):
    """Raised when a page cannot be retrieved."""


@dataclass
class PageCapture:
    """Where a fetched page was written, with a short text preview."""

    url: str
    html_path: str
    text_path: str
    preview: str

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "htmlPath": self.html_path,
            "textPath": self.text_path,
            "preview": self.preview,
        }


async def render_page(url: str, timeout: float) -> Tuple[str, int]:
    """Load a URL in headless Chromium and return the rendered HTML and status."""
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=True)
        page = await browser.new_page(user_agent=SCRAPER_USER_AGENT)
        page.set_default_navigation_timeout(timeout * 1000)
        try:
            logger.info("Rendering %s", url)
            response = await page.goto(url, wait_until="networkidle")
            status = response.status if response else 0
            html = await page.content()
        finally:
            await browser.close()
    return html, status


def download_page(url: str, session: requests.Session, timeout: float) -> Tuple[str, int]:
    resp, body = http_get(session, url, timeout, MAX_PAGE_BYTES)
    return decode_body(resp, body), resp.status_code


def capture_name(url: str) -> str:
    return slugify(_SCHEME_PREFIX.sub("", url), fallback="page")


def fetch_page(
    url: str,
    output_dir: Path,
    session: Optional[requests.Session] = None,
    render: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
) -> PageCapture:
    """Fetch ``url`` and store ``<name>-<epoch ms>.html`` and ``.txt`` copies."""
    owns_session = session is None and not render
    if owns_session:
        session = build_session(SCRAPER_USER_AGENT, PAGE_ACCEPT)
    try:
        if render:
            html, status = asyncio.run(render_page(url, timeout))
        else:
            html, status = download_page(url, session, timeout)
    except (requests.RequestException, PlaywrightError) as exc:
        raise PageFetchError(f"Failed to fetch {url}: {exc}") from exc
    finally:
        if owns_session:
            session.close()
    if not 200 <= status < 300:
        raise PageFetchError(f"Failed to fetch {url}: HTTP {status}")

    output_dir.mkdir(parents=True, exist_ok=True)
    stem = f"{capture_name(url)}-{int(time.time() * 1000)}"
    html_path = output_dir / f"{stem}.html"
    text_path = output_dir / f"{stem}.txt"
    html_path.write_text(html, encoding="utf-8")

    text = extract_page_text(html)
    text_path.write_text(text, encoding="utf-8")
    logger.debug("Saved %s and %s", html_path, text_path)
    return PageCapture(
        url=url,
        html_path=str(html_path),
        text_path=str(text_path),
        preview=text[:PREVIEW_CHARS],
    )
