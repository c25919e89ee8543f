"""Reading and writing the manifest and the manual overrides file."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from .models import Manifest

logger = logging.getLogger("favicon_harvest")


class ManifestNotFoundError(FileNotFoundError):
    """Raised when the download stage runs before a manifest was scraped."""


def load_manifest(path: Path) -> Manifest:
    if not path.exists():
        raise ManifestNotFoundError(f"Manifest not found at {path}; run the scrape stage first")
    data = json.loads(path.read_text(encoding="utf-8"))
    return Manifest.from_dict(data)


def save_manifest(manifest: Manifest, path: Path) -> None:
    """Replace the manifest file in one step so readers never see a partial write."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(manifest.to_dict(), indent=2)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info("Manifest saved to %s", path)


def load_overrides(path: Optional[Path]) -> Dict[str, str]:
    """Load the ``{hostname: icon_url}`` override map, if there is one."""
    if path is None or not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object of overrides in {path}")
    overrides = {
        str(host).strip().lower(): str(url).strip()
        for host, url in data.items()
        if url
    }
    logger.debug("Loaded %d favicon overrides from %s", len(overrides), path)
    return overrides
