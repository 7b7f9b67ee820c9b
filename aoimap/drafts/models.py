"""DraftAOI model."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


@dataclass
class DraftAOI:
    """An AOI kept only on this client.

    ``geojson`` keeps whatever shape it arrived in; drafts are rendered,
    never persisted remotely, so they are not normalized.
    """

    id: str
    geojson: Any
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    visible: bool = True
    name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "geojson": self.geojson,
            "created_at": self.created_at,
            "visible": self.visible,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DraftAOI":
        return cls(
            id=data["id"],
            geojson=data["geojson"],
            created_at=data.get("created_at") or datetime.now(timezone.utc).isoformat(),
            visible=data.get("visible", True),
            name=data.get("name"),
        )
