import re

import pytest

from favicon_harvest.utils import (
    canonicalize_url,
    normalize_page_url,
    origin_of,
    sanitize_host,
    slugify,
    split_url,
    utc_timestamp,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("example.com", "https://example.com"),
        ("  example.com/about ", "https://example.com/about"),
        ("//cdn.example.com/x", "https://cdn.example.com/x"),
        ("/example.com", "https://example.com"),
        ("http://example.com/path", "http://example.com/path"),
        ("HTTPS://Example.com", "HTTPS://Example.com"),
    ],
)
def test_normalize_page_url(raw, expected):
    assert normalize_page_url(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_normalize_page_url_empty(raw):
    assert normalize_page_url(raw) is None


def test_split_url_case_folds_host_and_adds_root_path():
    assert split_url("EXAMPLE.com/page") == ("example.com", "https://example.com/page")
    assert split_url("https://example.com/other")[0] == "example.com"
    assert split_url("acme.io") == ("acme.io", "https://acme.io/")


def test_split_url_is_idempotent():
    hostname, canonical = split_url("Acme.IO")
    assert split_url(canonical) == (hostname, canonical)


def test_split_url_keeps_port():
    assert split_url("https://Example.com:8080/x") == ("example.com", "https://example.com:8080/x")


@pytest.mark.parametrize(
    "raw",
    ["not a url ???", "mailto:someone@example.com", "https://", "https://bad host.com", "http://example.com:99999"],
)
def test_split_url_rejects_malformed(raw):
    assert split_url(raw) is None


def test_sanitize_host():
    assert sanitize_host("Sub.Example.COM") == "sub.example.com"
    assert sanitize_host("xn--bcher-kva.example") == "xn--bcher-kva.example"
    assert sanitize_host("weird_host:80") == "weird-host-80"


def test_slugify():
    assert slugify("example.com/About Us") == "example-com-about-us"
    assert slugify("???") == "page"


def test_utc_timestamp_format():
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", utc_timestamp())


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("HTTPS://ACME.io:443/Favicon.ico", "https://acme.io/Favicon.ico"),
        ("http://Acme.io:80", "http://acme.io/"),
        ("http://acme.io:8080/a?b=C", "http://acme.io:8080/a?b=C"),
        ("not a url", "not a url"),
    ],
)
def test_canonicalize_url(raw, expected):
    assert canonicalize_url(raw) == expected


def test_origin_of_drops_user_info_and_default_port():
    assert origin_of("https://user:pw@Acme.io:443/x") == "https://acme.io"
    assert origin_of("http://acme.io:8080/deep/page") == "http://acme.io:8080"
    assert origin_of("/relative/only") is None
