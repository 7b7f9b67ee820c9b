"""FeatureStore - remote-primary, local-fallback persistence for saved AOIs.

The remote store is authoritative whenever it answers. The local cache is a
mirror of the last successful remote read, and absorbs writes while the
remote store is unreachable. Remote failures never reach the caller: they are
logged and turned into a local-only effect tagged ``LOCAL_FALLBACK``.
"""

from __future__ import annotations

import asyncio
import json
import time
from datetime import datetime, timezone
from typing import Awaitable, Optional, TypeVar

from loguru import logger

from aoimap.errors import MalformedInputError
from aoimap.features.cache import FEATURES_CACHE_KEY, JsonFileCache
from aoimap.features.models import (
    DEFAULT_FEATURE_NAME,
    LOCAL_ID_PREFIX,
    AOIFeature,
    FeatureDraft,
    ResultSource,
    StoreResult,
)
from aoimap.features.remote import UPDATABLE_FIELDS, RemoteFeatureStore
from aoimap.layers.geometry import extract_geometry

T = TypeVar("T")


class FeatureStore:
    """Single source of truth for saved AOIFeature records."""

    def __init__(
        self,
        remote: RemoteFeatureStore,
        cache: JsonFileCache,
        timeout: Optional[float] = None,
        cache_key: str = FEATURES_CACHE_KEY,
    ):
        """Initialize the store.

        Args:
            remote: Remote durable store (primary)
            cache: Local durable cache (fallback mirror)
            timeout: Seconds before a remote call counts as failed; None waits forever
            cache_key: Cache key holding the mirrored feature list
        """
        self.remote = remote
        self.cache = cache
        self.timeout = timeout
        self.cache_key = cache_key
        self._last_local_ms = 0

    async def _call(self, awaitable: Awaitable[T]) -> T:
        if self.timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, self.timeout)

    # ==================
    # Tagged operations
    # ==================

    async def save(self, draft: FeatureDraft) -> StoreResult[AOIFeature]:
        """Persist a new feature.

        Raises:
            MalformedInputError: If the draft holds no recognised geometry.
        """
        geometry = extract_geometry(draft.geometry)
        if geometry is None:
            raise MalformedInputError("Feature has no valid GeoJSON geometry")

        record = {
            "name": draft.name or DEFAULT_FEATURE_NAME,
            "geometry": geometry,
            "properties": dict(draft.properties or {}),
        }

        try:
            row = await self._call(self.remote.insert(record))
        except Exception as e:
            logger.error(f"Error saving feature to remote store: {e}")
            feature = self._append_local(record)
            return StoreResult(feature, ResultSource.LOCAL_FALLBACK)

        feature = AOIFeature.from_dict(row)
        logger.info(f"Saved feature '{feature.name}' ({feature.id})")
        await self._resync()
        return StoreResult(feature, ResultSource.REMOTE)

    async def fetch(self) -> StoreResult[list[AOIFeature]]:
        """Read all features, newest first when the remote store answers."""
        try:
            rows = await self._call(self.remote.select())
        except Exception as e:
            logger.error(f"Error fetching features from remote store: {e}")
            return StoreResult(self.read_local(), ResultSource.LOCAL_FALLBACK)

        features = [AOIFeature.from_dict(row) for row in rows]
        self._write_local(features)
        return StoreResult(features, ResultSource.REMOTE)

    async def remove(self, feature_id: str) -> StoreResult[bool]:
        """Delete a feature. ``value`` is True only for a confirmed remote delete."""
        try:
            await self._call(self.remote.delete(feature_id))
        except Exception as e:
            logger.error(f"Error deleting feature {feature_id} from remote store: {e}")
            self._delete_local(feature_id)
            return StoreResult(False, ResultSource.LOCAL_FALLBACK)

        logger.info(f"Deleted feature {feature_id}")
        await self._resync()
        return StoreResult(True, ResultSource.REMOTE)

    async def update(self, feature_id: str, updates: dict) -> StoreResult[Optional[AOIFeature]]:
        """Patch name/geometry/properties and stamp ``updated_at``.

        On remote failure the cached copy is patched instead, if there is one.

        Raises:
            MalformedInputError: If a geometry update holds no recognised geometry.
        """
        patch = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
        if "geometry" in patch:
            geometry = extract_geometry(patch["geometry"])
            if geometry is None:
                raise MalformedInputError("Feature has no valid GeoJSON geometry")
            patch["geometry"] = geometry
        patch["updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            row = await self._call(self.remote.update(feature_id, patch))
        except Exception as e:
            logger.error(f"Error updating feature {feature_id} in remote store: {e}")
            return StoreResult(self._update_local(feature_id, patch), ResultSource.LOCAL_FALLBACK)

        await self._resync()
        return StoreResult(AOIFeature.from_dict(row), ResultSource.REMOTE)

    # ==================
    # Untagged operations
    # ==================

    async def save_feature(self, draft: FeatureDraft) -> Optional[AOIFeature]:
        """Save remotely; None means the record only reached the local fallback."""
        result = await self.save(draft)
        return result.value if result.remote else None

    async def get_features(self) -> list[AOIFeature]:
        return (await self.fetch()).value

    async def delete_feature(self, feature_id: str) -> bool:
        return (await self.remove(feature_id)).value

    async def update_feature(self, feature_id: str, updates: dict) -> Optional[AOIFeature]:
        """Update remotely; None on any remote failure."""
        result = await self.update(feature_id, updates)
        return result.value if result.remote else None

    # ==================
    # Local cache
    # ==================

    def read_local(self) -> list[AOIFeature]:
        """Features in the local cache, in insertion order.

        A corrupt snapshot is discarded and treated as empty.
        """
        raw = self.cache.get(self.cache_key)
        if not raw:
            return []
        try:
            return [AOIFeature.from_dict(item) for item in json.loads(raw)]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding corrupt feature cache: {e}")
            return []

    def _write_local(self, features: list[AOIFeature]) -> None:
        try:
            self.cache.set(self.cache_key, json.dumps([f.to_dict() for f in features]))
        except OSError as e:
            logger.error(f"Error writing feature cache: {e}")

    def _append_local(self, record: dict) -> AOIFeature:
        now = datetime.now(timezone.utc)
        feature = AOIFeature(
            id=f"{LOCAL_ID_PREFIX}{self._next_local_ms()}",
            name=record["name"],
            geometry=record["geometry"],
            properties=record["properties"],
            created_at=now,
            updated_at=now,
        )
        stored = self.read_local()
        stored.append(feature)
        self._write_local(stored)
        logger.info(f"Saved feature '{feature.name}' to local cache as {feature.id}")
        return feature

    def _delete_local(self, feature_id: str) -> None:
        stored = self.read_local()
        remaining = [f for f in stored if f.id != feature_id]
        if len(remaining) != len(stored):
            self._write_local(remaining)

    def _update_local(self, feature_id: str, patch: dict) -> Optional[AOIFeature]:
        stored = self.read_local()
        for feature in stored:
            if feature.id == feature_id:
                for key in UPDATABLE_FIELDS:
                    if key in patch:
                        setattr(feature, key, patch[key])
                feature.name = feature.name or DEFAULT_FEATURE_NAME
                feature.updated_at = datetime.fromisoformat(patch["updated_at"])
                self._write_local(stored)
                return feature
        return None

    def _next_local_ms(self) -> int:
        """Current epoch milliseconds, strictly increasing within this store."""
        now_ms = time.time_ns() // 1_000_000
        self._last_local_ms = max(now_ms, self._last_local_ms + 1)
        return self._last_local_ms

    async def _resync(self) -> None:
        """Overwrite the local mirror from a fresh remote read."""
        try:
            rows = await self._call(self.remote.select())
        except Exception as e:
            logger.warning(f"Local cache resync failed: {e}")
            return
        self._write_local([AOIFeature.from_dict(row) for row in rows])
