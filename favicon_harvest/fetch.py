"""HTTP sessions and deadline-bounded GET requests."""

from __future__ import annotations

import time
from typing import Tuple

import requests
from urllib3.exceptions import HTTPError as Urllib3HTTPError
from urllib3.exceptions import ReadTimeoutError

from .config import PAGE_ACCEPT

MAX_PAGE_BYTES = 5 * 1024 * 1024
MAX_IMAGE_BYTES = 10 * 1024 * 1024
CHUNK_SIZE = 64 * 1024


class ResponseTooLarge(requests.RequestException):
    """Raised when a body grows past the allowed number of bytes."""


def build_session(user_agent: str, accept: str = PAGE_ACCEPT) -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent, "Accept": accept})
    return session


def _read_chunk(resp: requests.Response) -> bytes:
    try:
        return resp.raw.read1(CHUNK_SIZE)
    except ReadTimeoutError as exc:
        raise requests.Timeout(str(exc)) from exc
    except Urllib3HTTPError as exc:
        raise requests.ConnectionError(str(exc)) from exc


def http_get(
    session: requests.Session,
    url: str,
    timeout: float,
    max_bytes: int,
) -> Tuple[requests.Response, bytes]:
    """GET ``url`` and return the response with its body.

    ``timeout`` bounds the whole exchange, not just each socket read: the body
    is streamed and the request is abandoned with ``requests.Timeout`` once
    the deadline passes, even if the server keeps trickling bytes.
    """
    deadline = time.monotonic() + timeout
    resp = session.get(url, timeout=timeout, stream=True)
    chunks = []
    size = 0
    try:
        while True:
            if time.monotonic() > deadline:
                raise requests.Timeout(f"Timed out after {timeout:g}s reading {url}")
            chunk = _read_chunk(resp)
            if not chunk:
                break
            size += len(chunk)
            if size > max_bytes:
                raise ResponseTooLarge(f"{url} is larger than {max_bytes} bytes")
            chunks.append(chunk)
            if time.monotonic() > deadline:
                raise requests.Timeout(f"Timed out after {timeout:g}s reading {url}")
    finally:
        resp.close()
    return resp, b"".join(chunks)


def decode_body(resp: requests.Response, body: bytes) -> str:
    """Decode with the declared charset, defaulting to UTF-8."""
    content_type = resp.headers.get("Content-Type", "")
    encoding = None
    if "charset" in content_type.lower():
        encoding = requests.utils.get_encoding_from_headers(resp.headers)
    try:
        return body.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")
