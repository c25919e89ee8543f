"""Shared fixtures: a tiny stand-in for ``requests.Session``."""

import time
from typing import Dict, Optional, Sequence

import pytest
import requests
from requests.structures import CaseInsensitiveDict


class FakeRaw:
    """Replays body chunks through ``read1``, optionally pausing before each one."""

    def __init__(self, chunks: Sequence[bytes], delay: float = 0.0):
        self.chunks = list(chunks)
        self.delay = delay
        self.reads = 0

    def rewind(self):
        self.reads = 0

    def read1(self, amt=-1):
        if self.reads >= len(self.chunks):
            return b""
        if self.delay:
            time.sleep(self.delay)
        self.reads += 1
        return self.chunks[self.reads - 1]


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        content: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
        text: Optional[str] = None,
        url: str = "",
        raw: Optional[FakeRaw] = None,
    ):
        self.status_code = status_code
        self.content = content
        self.headers = CaseInsensitiveDict(headers or {})
        self.text = text if text is not None else content.decode("utf-8", "replace")
        self.url = url
        self.raw = raw if raw is not None else FakeRaw([content] if content else [])
        self.closed = False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}", response=self)

    def close(self):
        self.closed = True


class FakeSession:
    """Serves canned responses by URL; unknown URLs answer 404."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requested = []
        self.timeouts = []
        self.closed = False

    def get(self, url, timeout=None, **kwargs):
        self.requested.append(url)
        self.timeouts.append(timeout)
        route = self.routes.get(url)
        if isinstance(route, Exception):
            raise route
        if route is None:
            return FakeResponse(status_code=404, url=url)
        route.url = url
        route.raw.rewind()
        return route

    def close(self):
        self.closed = True


def html_response(html: str) -> FakeResponse:
    return FakeResponse(200, html.encode("utf-8"), {"Content-Type": "text/html"}, text=html)


def image_response(content_type: str, data: bytes = b"\x00\x00\x01\x00icon") -> FakeResponse:
    return FakeResponse(200, data, {"Content-Type": content_type})


@pytest.fixture
def fake_session():
    return FakeSession()
