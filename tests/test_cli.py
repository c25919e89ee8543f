import json
from unittest.mock import patch

import pytest

from conftest import FakeSession, html_response, image_response
from favicon_harvest.cli import main, parse_args


@pytest.fixture
def workspace(tmp_path):
    records = tmp_path / "records.json"
    records.write_text(
        json.dumps([{"name": "Acme", "website": "acme.io"}, {"name": "Noise", "website": "not a url ???"}]),
        encoding="utf-8",
    )
    return tmp_path


def _scrape_args(tmp_path):
    return [
        "scrape",
        "--records", str(tmp_path / "records.json"),
        "--csv", str(tmp_path / "missing.csv"),
        "--overrides", str(tmp_path / "overrides.json"),
        "--manifest", str(tmp_path / "tmp" / "favicons-manifest.json"),
    ]


def _download_args(tmp_path):
    return [
        "download",
        "--manifest", str(tmp_path / "tmp" / "favicons-manifest.json"),
        "--output", str(tmp_path / "public" / "favicons"),
        "--overrides", str(tmp_path / "overrides.json"),
    ]


def test_parse_args_defaults():
    args = parse_args(["download"])
    assert args.timeout == 15.0
    assert str(args.manifest) == "tmp/favicons-manifest.json"
    assert args.refresh is False


def test_end_to_end_scrape_then_download(workspace):
    scrape_session = FakeSession({"https://acme.io/": html_response("<html><head></head></html>")})
    download_session = FakeSession({"https://acme.io/favicon.ico": image_response("image/x-icon")})

    with patch("favicon_harvest.scraper.build_session", return_value=scrape_session):
        assert main(_scrape_args(workspace)) == 0

    manifest_path = workspace / "tmp" / "favicons-manifest.json"
    manifest = json.loads(manifest_path.read_text())
    assert manifest["totalHosts"] == 1
    entry = manifest["entries"][0]
    assert entry["hostname"] == "acme.io"
    assert entry["pageUrl"] == "https://acme.io/"
    assert {"url": "https://acme.io/favicon.ico", "type": "fallback"} in entry["candidates"]

    with patch("favicon_harvest.downloader.build_session", return_value=download_session):
        assert main(_download_args(workspace)) == 0

    manifest = json.loads(manifest_path.read_text())
    assert manifest["summary"] == {"downloaded": 1, "skipped": 0, "failed": 0}
    assert manifest["entries"][0]["download"]["file"] == "acme.io.ico"
    assert (workspace / "public" / "favicons" / "acme.io.ico").exists()
    assert download_session.requested == ["https://acme.io/favicon.ico"]


def test_download_without_manifest_exits_1(tmp_path):
    assert main(_download_args(tmp_path)) == 1


def test_scrape_without_entries_exits_1(tmp_path):
    (tmp_path / "records.json").write_text("[]", encoding="utf-8")
    assert main(_scrape_args(tmp_path)) == 1


def test_unexpected_error_exits_1(workspace):
    (workspace / "overrides.json").write_text("[1, 2]", encoding="utf-8")
    assert main(_scrape_args(workspace)) == 1


def test_fetch_page_prints_capture(tmp_path, capsys):
    session = FakeSession({"https://acme.io/": html_response("<body>Apply by June</body>")})
    with patch("favicon_harvest.pages.build_session", return_value=session):
        code = main(["fetch-page", "https://acme.io/", "--output", str(tmp_path)])

    assert code == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["url"] == "https://acme.io/"
    assert printed["preview"] == "Apply by June"


def test_fetch_page_failure_exits_1(tmp_path):
    with patch("favicon_harvest.pages.build_session", return_value=FakeSession()):
        assert main(["fetch-page", "https://acme.io/", "--output", str(tmp_path)]) == 1
