"""Local durable key-value cache backed by one JSON file per key."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

FEATURES_CACHE_KEY = "aoi_features_backup"
DRAFTS_CACHE_KEY = "aoi_drafts_v1"

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileCache:
    """String values stored under ``<directory>/<key>.json``."""

    def __init__(self, directory: Path):
        """Initialize the cache.

        Args:
            directory: Directory to store cache files (created if missing)
        """
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None if nothing is stored."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        """Store ``value``, replacing the previous one atomically."""
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)
