"""AOIFeature and related models for saved areas of interest."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

DEFAULT_FEATURE_NAME = "Unnamed Feature"
LOCAL_ID_PREFIX = "local-"

T = TypeVar("T")


class ResultSource(str, Enum):
    """Which store produced a FeatureStore result."""
    REMOTE = "remote"
    LOCAL_FALLBACK = "local_fallback"


@dataclass
class StoreResult(Generic[T]):
    """A FeatureStore outcome tagged with the store that produced it."""

    value: T
    source: ResultSource

    @property
    def remote(self) -> bool:
        return self.source == ResultSource.REMOTE


@dataclass
class FeatureDraft:
    """Input to a save: everything but the persistence-assigned fields."""

    geometry: dict
    name: Optional[str] = None
    properties: dict = field(default_factory=dict)


@dataclass
class AOIFeature:
    """A saved, persistence-tracked area of interest."""

    id: str
    geometry: dict
    name: str = DEFAULT_FEATURE_NAME
    properties: dict = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_local(self) -> bool:
        """True if the record was synthesized while the remote store was down."""
        return self.id.startswith(LOCAL_ID_PREFIX)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "geometry": self.geometry,
            "properties": self.properties,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AOIFeature":
        return cls(
            id=str(data["id"]),
            geometry=data["geometry"],
            name=data.get("name") or DEFAULT_FEATURE_NAME,
            properties=data.get("properties") or {},
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        # Hosted table APIs emit a trailing "Z"
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return datetime.now(timezone.utc)
