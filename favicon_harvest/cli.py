"""Command-line entry point for the favicon pipeline."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Sequence

from .config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_CSV_PATHS,
    DEFAULT_MANIFEST_PATH,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_OVERRIDES_PATH,
    DEFAULT_PAGES_DIR,
    DEFAULT_RECORDS_PATH,
    DEFAULT_TIMEOUT,
    HarvestConfig,
)
from .downloader import download_manifest
from .manifest import ManifestNotFoundError, load_manifest, load_overrides, save_manifest
from .pages import PageFetchError, fetch_page
from .scraper import scrape_hosts
from .sources import collect_website_entries, group_hosts

logger = logging.getLogger("favicon_harvest.cli")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_scrape_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--records",
        action="append",
        type=Path,
        help="JSON file holding a list of records with a 'website' field (repeatable)",
    )
    parser.add_argument(
        "--csv",
        action="append",
        type=Path,
        help="CSV file with a 'website' column (repeatable)",
    )
    parser.add_argument(
        "--overrides",
        default=DEFAULT_OVERRIDES_PATH,
        type=Path,
        help="JSON mapping of hostname to icon URL",
    )
    parser.add_argument(
        "--manifest",
        default=DEFAULT_MANIFEST_PATH,
        type=Path,
        help="Where the scraped manifest should be written",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help="Number of pages fetched in parallel",
    )
    _add_common_arguments(parser)


def _add_download_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--manifest",
        default=DEFAULT_MANIFEST_PATH,
        type=Path,
        help="Manifest produced by the scrape command",
    )
    parser.add_argument(
        "--output",
        default=DEFAULT_OUTPUT_DIR,
        type=Path,
        help="Directory where icon files should be written",
    )
    parser.add_argument(
        "--overrides",
        default=DEFAULT_OVERRIDES_PATH,
        type=Path,
        help="JSON mapping of hostname to icon URL",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Re-download icons even when a local file already exists",
    )
    _add_common_arguments(parser)


def _add_fetch_page_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="Page to capture")
    parser.add_argument(
        "--output",
        default=DEFAULT_PAGES_DIR,
        type=Path,
        help="Directory where the HTML and text copies should be written",
    )
    parser.add_argument(
        "--render",
        action="store_true",
        help="Render the page in headless Chromium before saving it",
    )
    _add_common_arguments(parser)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Discover and download website favicons through a JSON manifest.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scrape_parser = subparsers.add_parser(
        "scrape", help="Collect hosts and scrape candidate icon URLs"
    )
    _add_scrape_arguments(scrape_parser)

    download_parser = subparsers.add_parser(
        "download", help="Download one icon per host listed in the manifest"
    )
    _add_download_arguments(download_parser)

    fetch_parser = subparsers.add_parser(
        "fetch-page", help="Save a page's HTML and text for manual research"
    )
    _add_fetch_page_arguments(fetch_parser)

    return parser.parse_args(list(sys.argv[1:] if argv is None else argv))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _run_scrape(args: argparse.Namespace) -> int:
    config = HarvestConfig(
        manifest_path=args.manifest,
        overrides_path=args.overrides,
        records_paths=args.records or [DEFAULT_RECORDS_PATH],
        csv_paths=args.csv or list(DEFAULT_CSV_PATHS),
        concurrency=args.concurrency,
        timeout=args.timeout,
    )
    entries = collect_website_entries(config.records_paths, config.csv_paths)
    if not entries:
        logger.error("No website entries found.")
        return 1

    hosts = group_hosts(entries)
    overrides = load_overrides(config.overrides_path)
    start = time.perf_counter()
    manifest = asyncio.run(scrape_hosts(hosts, config, overrides))
    save_manifest(manifest, config.manifest_path)

    with_errors = sum(1 for entry in manifest.entries if entry.errors)
    logger.info(
        "Scraped %d hosts in %.2fs (%d with page errors)",
        manifest.total_hosts,
        time.perf_counter() - start,
        with_errors,
    )
    return 0


def _run_download(args: argparse.Namespace) -> int:
    config = HarvestConfig(
        manifest_path=args.manifest,
        output_dir=args.output,
        overrides_path=args.overrides,
        timeout=args.timeout,
        refresh=args.refresh,
    )
    try:
        manifest = load_manifest(config.manifest_path)
    except ManifestNotFoundError as exc:
        logger.error("%s", exc)
        return 1

    config.output_dir.mkdir(parents=True, exist_ok=True)
    overrides = load_overrides(config.overrides_path)
    updated = download_manifest(manifest, config, overrides)
    save_manifest(updated, config.manifest_path)
    return 0


def _run_fetch_page(args: argparse.Namespace) -> int:
    try:
        capture = fetch_page(
            args.url, args.output, render=args.render, timeout=args.timeout
        )
    except PageFetchError as exc:
        logger.error("%s", exc)
        return 1
    sys.stdout.write(json.dumps(capture.to_dict(), indent=2) + "\n")
    sys.stdout.flush()
    return 0


COMMANDS = {
    "scrape": _run_scrape,
    "download": _run_download,
    "fetch-page": _run_fetch_page,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    try:
        return COMMANDS[args.command](args)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unexpected error running %s", args.command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
