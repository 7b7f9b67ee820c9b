"""Shared fixtures for AOI-MAP tests."""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from aoimap.config import Settings
from aoimap.errors import RemoteStoreError
from aoimap.features.cache import JsonFileCache


class MemoryRemote:
    """In-memory remote store. Set ``fail`` to make every call raise."""

    def __init__(self):
        self.rows: list[dict] = []
        self.fail = False
        self.calls: list[str] = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if self.fail:
            raise ConnectionError("remote unavailable")

    async def insert(self, record: dict) -> dict:
        self._check("insert")
        self._clock += timedelta(seconds=1)
        row = {
            "id": uuid.uuid4().hex,
            "name": record.get("name"),
            "geometry": record["geometry"],
            "properties": record.get("properties") or {},
            "created_at": self._clock.isoformat(),
            "updated_at": self._clock.isoformat(),
        }
        self.rows.append(row)
        return dict(row)

    async def select(self) -> list[dict]:
        self._check("select")
        return [dict(r) for r in sorted(self.rows, key=lambda r: r["created_at"], reverse=True)]

    async def delete(self, feature_id: str) -> None:
        self._check("delete")
        remaining = [r for r in self.rows if r["id"] != feature_id]
        if len(remaining) == len(self.rows):
            raise RemoteStoreError(f"Feature not found: {feature_id}")
        self.rows = remaining

    async def update(self, feature_id: str, patch: dict) -> dict:
        self._check("update")
        for row in self.rows:
            if row["id"] == feature_id:
                row.update(patch)
                return dict(row)
        raise RemoteStoreError(f"Feature not found: {feature_id}")


@pytest.fixture(autouse=True)
def _event_loop():
    """Provide a fresh event loop for each test."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture
def remote():
    return MemoryRemote()


@pytest.fixture
def cache(tmp_path):
    return JsonFileCache(tmp_path / "cache")


@pytest.fixture
def config(tmp_path):
    return Settings(
        _env_file=None,
        cache_dir=str(tmp_path / "cache"),
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        remote_timeout=2.0,
        search_debounce_seconds=0.01,
    )


@pytest.fixture
def square():
    """Polygon spanning lat 51.2-51.3, lng 6.5-6.6."""
    return {
        "type": "Polygon",
        "coordinates": [[[6.5, 51.2], [6.6, 51.2], [6.6, 51.3], [6.5, 51.3], [6.5, 51.2]]],
    }
