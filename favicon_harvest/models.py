"""Data models shared by the collector, scraper and downloader stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class WebsiteEntry:
    """Raw website reference pulled from an input record."""

    name: str
    website: str
    source: str


@dataclass
class NormalizedHost:
    """A unique hostname together with the page that will be scraped for it."""

    hostname: str
    page_url: str
    sources: List[str] = field(default_factory=list)


@dataclass
class CandidateRef:
    """One plausible icon URL for a host, tagged with how it was found."""

    url: str
    type: str
    rel: Optional[str] = None
    sizes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url, "type": self.type}
        if self.rel is not None:
            data["rel"] = self.rel
        if self.sizes is not None:
            data["sizes"] = self.sizes
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CandidateRef":
        return cls(
            url=data["url"],
            type=data.get("type", "fallback"),
            rel=data.get("rel"),
            sizes=data.get("sizes"),
        )


@dataclass
class DownloadResult:
    """Outcome of the download stage for a single host."""

    status: str
    checked_at: str
    file: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def downloaded(self) -> bool:
        return self.status in ("success", "updated")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": self.status}
        for key, value in (
            ("file", self.file),
            ("url", self.url),
            ("source", self.source),
            ("contentType", self.content_type),
        ):
            if value is not None:
                data[key] = value
        data["checkedAt"] = self.checked_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DownloadResult":
        return cls(
            status=data["status"],
            checked_at=data.get("checkedAt", ""),
            file=data.get("file"),
            url=data.get("url"),
            source=data.get("source"),
            content_type=data.get("contentType"),
        )


@dataclass
class ManifestEntry:
    """Scrape (and optionally download) state for one host."""

    hostname: str
    page_url: str
    sources: List[str]
    scraped_at: str
    candidates: List[CandidateRef] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    download: Optional[DownloadResult] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "hostname": self.hostname,
            "pageUrl": self.page_url,
            "sources": list(self.sources),
            "scrapedAt": self.scraped_at,
            "candidates": [candidate.to_dict() for candidate in self.candidates],
            "errors": list(self.errors),
        }
        if self.download is not None:
            data["download"] = self.download.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifestEntry":
        download = data.get("download")
        return cls(
            hostname=data.get("hostname") or "unknown",
            page_url=data.get("pageUrl", ""),
            sources=list(data.get("sources") or []),
            scraped_at=data.get("scrapedAt", ""),
            candidates=[
                CandidateRef.from_dict(item)
                for item in data.get("candidates") or []
                if isinstance(item, dict) and item.get("url")
            ],
            errors=list(data.get("errors") or []),
            download=DownloadResult.from_dict(download) if download else None,
        )


@dataclass
class DownloadSummary:
    """Batch-level counters written after the download stage."""

    downloaded: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, result: DownloadResult) -> None:
        if result.downloaded:
            self.downloaded += 1
        elif result.status == "exists":
            self.skipped += 1
        else:
            self.failed += 1

    def to_dict(self) -> Dict[str, int]:
        return {
            "downloaded": self.downloaded,
            "skipped": self.skipped,
            "failed": self.failed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DownloadSummary":
        return cls(
            downloaded=int(data.get("downloaded", 0)),
            skipped=int(data.get("skipped", 0)),
            failed=int(data.get("failed", 0)),
        )


@dataclass
class Manifest:
    """The JSON document passed between the scrape and download stages."""

    generated_at: str
    total_hosts: int
    entries: List[ManifestEntry] = field(default_factory=list)
    downloaded_at: Optional[str] = None
    summary: Optional[DownloadSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "generatedAt": self.generated_at,
            "totalHosts": self.total_hosts,
            "entries": [entry.to_dict() for entry in self.entries],
        }
        if self.downloaded_at is not None:
            data["downloadedAt"] = self.downloaded_at
        if self.summary is not None:
            data["summary"] = self.summary.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Manifest":
        entries = [
            ManifestEntry.from_dict(item)
            for item in data.get("entries") or []
            if isinstance(item, dict)
        ]
        summary = data.get("summary")
        return cls(
            generated_at=data.get("generatedAt", ""),
            total_hosts=int(data.get("totalHosts", len(entries))),
            entries=entries,
            downloaded_at=data.get("downloadedAt"),
            summary=DownloadSummary.from_dict(summary) if summary else None,
        )
