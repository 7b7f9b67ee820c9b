"""Remote durable feature stores.

Two interchangeable backends implement ``RemoteFeatureStore``:

- ``SqlFeatureRepository``: SQLAlchemy async ORM (sqlite/aiosqlite by default)
- ``RestFeatureRepository``: PostgREST-style hosted table API over httpx

Records cross this boundary as plain dicts. Any failure is an exception;
callers treat all of them alike as "remote unavailable".
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import httpx
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from aoimap.config import Settings
from aoimap.database import create_engine, create_session_factory, init_db
from aoimap.errors import RemoteStoreError
from aoimap.models import AOIFeatureRow

UPDATABLE_FIELDS = ("name", "geometry", "properties")


class RemoteFeatureStore(Protocol):
    """The remote table the FeatureStore is primary against."""

    async def insert(self, record: dict) -> dict: ...

    async def select(self) -> list[dict]: ...

    async def delete(self, feature_id: str) -> None: ...

    async def update(self, feature_id: str, patch: dict) -> dict: ...


class SqlFeatureRepository:
    """Remote store backed by the ``aoi_features`` SQL table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ):
        self._session_factory = session_factory
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "SqlFeatureRepository":
        """Repository with its own engine for ``database_url``."""
        engine = create_engine(database_url, echo=echo)
        return cls(create_session_factory(engine), engine=engine)

    async def create_tables(self) -> None:
        if self.engine is not None:
            await init_db(self.engine)

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()

    async def insert(self, record: dict) -> dict:
        """Insert a record; id and timestamps are assigned here."""
        now = datetime.now(timezone.utc)
        row = AOIFeatureRow(
            id=uuid.uuid4().hex,
            name=record.get("name"),
            geometry=record["geometry"],
            properties=record.get("properties") or {},
            created_at=now,
            updated_at=now,
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
        return row.to_dict()

    async def select(self) -> list[dict]:
        """All records, newest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(AOIFeatureRow).order_by(
                    AOIFeatureRow.created_at.desc(), AOIFeatureRow.seq.desc()
                )
            )
            return [row.to_dict() for row in result.scalars().all()]

    async def delete(self, feature_id: str) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(AOIFeatureRow).where(AOIFeatureRow.id == feature_id)
            )
            await session.commit()
        if result.rowcount == 0:
            raise RemoteStoreError(f"Feature not found: {feature_id}")

    async def update(self, feature_id: str, patch: dict) -> dict:
        async with self._session_factory() as session:
            result = await session.execute(
                select(AOIFeatureRow).where(AOIFeatureRow.id == feature_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise RemoteStoreError(f"Feature not found: {feature_id}")

            for key in UPDATABLE_FIELDS:
                if key in patch:
                    setattr(row, key, patch[key])
            row.updated_at = _as_datetime(patch.get("updated_at"))

            await session.commit()
            return row.to_dict()


class RestFeatureRepository:
    """Remote store reached through a PostgREST-style table API.

    Rows live at ``{base_url}/rest/v1/{table}``; filters use the
    ``column=eq.value`` syntax and writes ask for the affected rows back.
    """

    def __init__(self, base_url: str, api_key: str, table: str = "aoi_features", timeout: float = 10.0):
        self.endpoint = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.timeout = timeout
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Prefer": "return=representation",
        }

    async def _request(self, method: str, **kwargs: Any) -> Any:
        async with httpx.AsyncClient() as client:
            resp = await client.request(
                method,
                self.endpoint,
                headers=self._headers,
                timeout=self.timeout,
                **kwargs,
            )
            resp.raise_for_status()
        return resp.json()

    async def insert(self, record: dict) -> dict:
        rows = await self._request("POST", json=record)
        return _single(rows, "insert")

    async def select(self) -> list[dict]:
        rows = await self._request("GET", params={"select": "*", "order": "created_at.desc"})
        return list(rows or [])

    async def delete(self, feature_id: str) -> None:
        rows = await self._request("DELETE", params={"id": f"eq.{feature_id}"})
        if not rows:
            raise RemoteStoreError(f"Feature not found: {feature_id}")

    async def update(self, feature_id: str, patch: dict) -> dict:
        rows = await self._request("PATCH", params={"id": f"eq.{feature_id}"}, json=patch)
        if not rows:
            raise RemoteStoreError(f"Feature not found: {feature_id}")
        return rows[0]


def create_remote_store(config: Settings) -> RemoteFeatureStore:
    """Build the remote store selected by ``config.remote_backend``."""
    if config.remote_backend == "sql":
        return SqlFeatureRepository.from_url(config.database_url, echo=config.debug)
    elif config.remote_backend == "rest":
        if not config.rest_url:
            raise ValueError("rest_url is required for the rest backend")
        return RestFeatureRepository(
            config.rest_url,
            config.rest_api_key,
            table=config.rest_table,
            timeout=config.remote_timeout,
        )
    else:
        raise ValueError(f"Unsupported remote backend: {config.remote_backend}")


def _single(rows: Any, operation: str) -> dict:
    if not isinstance(rows, list) or not rows:
        raise RemoteStoreError(f"Remote {operation} returned no rows")
    return rows[0]


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return datetime.now(timezone.utc)
