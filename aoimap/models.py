"""SQLAlchemy models for AOI-MAP."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from aoimap.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AOIFeatureRow(Base):
    """A saved area of interest (remote durable store)."""

    __tablename__ = "aoi_features"

    # Insertion sequence; breaks created_at ties when ordering
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    geometry: Mapped[dict] = mapped_column(JSON)
    properties: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "geometry": self.geometry,
            "properties": self.properties or {},
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
