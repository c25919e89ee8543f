"""Collect website entries from record files and group them by hostname."""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .models import NormalizedHost, WebsiteEntry
from .utils import split_url

logger = logging.getLogger("favicon_harvest")

JSON_SOURCE_NAME = "notion"


def load_json_records(path: Path) -> List[dict]:
    """Load a JSON array of records; a missing file yields no records."""
    if not path.exists():
        logger.debug("Record file %s not found, skipping", path)
        return []
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of records in {path}")
    return [record for record in data if isinstance(record, dict)]


def parse_csv(path: Path) -> List[Dict[str, str]]:
    """Parse a quoted CSV file with a header row into dictionaries."""
    if not path.exists():
        logger.debug("CSV file %s not found, skipping", path)
        return []
    raw = path.read_text(encoding="utf-8-sig").strip()
    if not raw:
        return []

    rows = [row for row in csv.reader(io.StringIO(raw)) if any(cell.strip() for cell in row)]
    if len(rows) <= 1:
        return []
    headers = [header.replace('"', "").strip() for header in rows[0]]
    records: List[Dict[str, str]] = []
    for row in rows[1:]:
        record = {}
        for index, header in enumerate(headers):
            record[header] = row[index].strip() if index < len(row) else ""
        records.append(record)
    return records


def iter_record_entries(records: Iterable[dict], source: str) -> Iterable[WebsiteEntry]:
    for record in records:
        website = record.get("website")
        if not website:
            continue
        yield WebsiteEntry(
            name=record.get("name") or "Untitled",
            website=str(website),
            source=source,
        )


def iter_csv_entries(records: Iterable[Dict[str, str]], source: str) -> Iterable[WebsiteEntry]:
    for record in records:
        website = record.get("website")
        if not website:
            continue
        yield WebsiteEntry(
            name=record.get("accelerator") or website,
            website=website,
            source=source,
        )


def collect_website_entries(
    records_paths: Sequence[Path] = (),
    csv_paths: Sequence[Path] = (),
) -> List[WebsiteEntry]:
    """Read every configured input and return the raw website entries."""
    entries: List[WebsiteEntry] = []
    for path in records_paths:
        entries.extend(iter_record_entries(load_json_records(path), JSON_SOURCE_NAME))
    for path in csv_paths:
        entries.extend(iter_csv_entries(parse_csv(path), path.name))
    logger.debug("Collected %d website entries", len(entries))
    return entries


def parse_host(entry: WebsiteEntry) -> Optional[NormalizedHost]:
    """Turn one entry into a host record, or ``None`` if the URL is unusable."""
    parsed = split_url(entry.website)
    if parsed is None:
        return None
    hostname, page_url = parsed
    return NormalizedHost(hostname=hostname, page_url=page_url, sources=[entry.source])


def group_hosts(entries: Iterable[WebsiteEntry]) -> List[NormalizedHost]:
    """Deduplicate entries by hostname, keeping the first page URL seen.

    Unparseable website values are dropped; the inputs are known to be noisy.
    """
    hosts: Dict[str, NormalizedHost] = {}
    for entry in entries:
        host = parse_host(entry)
        if host is None:
            logger.debug("Dropping unusable website %r (%s)", entry.website, entry.name)
            continue
        existing = hosts.get(host.hostname)
        if existing is None:
            hosts[host.hostname] = host
        elif entry.source not in existing.sources:
            existing.sources.append(entry.source)
    return list(hosts.values())
