"""Configuration objects and constants for the favicon pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

DEFAULT_CONCURRENCY = 20
DEFAULT_TIMEOUT = 15.0

DEFAULT_RECORDS_PATH = Path("src/data/imported-accelerators.json")
DEFAULT_CSV_PATHS = (
    Path("data/accelerators-master.csv"),
    Path("data/accelerators-crypto.csv"),
)
DEFAULT_OVERRIDES_PATH = Path("data/favicon-overrides.json")
DEFAULT_MANIFEST_PATH = Path("tmp/favicons-manifest.json")
DEFAULT_OUTPUT_DIR = Path("public/favicons")
DEFAULT_PAGES_DIR = Path("tmp/pages")

SCRAPER_USER_AGENT = "favicon-harvest-scraper/0.1 (+https://github.com/favicon-harvest)"
DOWNLOADER_USER_AGENT = "favicon-harvest-downloader/0.1 (+https://github.com/favicon-harvest)"
PAGE_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
IMAGE_ACCEPT = "image/*"


@dataclass
class HarvestConfig:
    """Top-level settings shared by the scrape and download stages."""

    manifest_path: Path = DEFAULT_MANIFEST_PATH
    output_dir: Path = DEFAULT_OUTPUT_DIR
    overrides_path: Optional[Path] = DEFAULT_OVERRIDES_PATH
    records_paths: List[Path] = field(default_factory=lambda: [DEFAULT_RECORDS_PATH])
    csv_paths: List[Path] = field(default_factory=lambda: list(DEFAULT_CSV_PATHS))
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT
    refresh: bool = False
    scraper_user_agent: str = SCRAPER_USER_AGENT
    downloader_user_agent: str = DOWNLOADER_USER_AGENT
