"""MapLayer and viewport dataclasses for the map reconciliation layer.

All coordinates are stored in GeoJSON convention: [lng, lat]. View centres
and focus requests are (lat, lng) like the geocoder returns them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from aoimap.layers.geometry import BoundingBox


class LayerKind(str, Enum):
    """What a rendered layer represents."""
    BASE = "base"          # Tile layer (street, satellite, ...)
    FEATURE = "feature"    # One saved AOIFeature
    PREVIEW = "preview"    # Dashed outline of a not-yet-saved candidate
    DRAFT = "draft"        # Client-only draft AOI


@dataclass
class MapLayer:
    """A single renderable layer on the map widget.

    Attributes:
        layer_id: Unique identifier on the widget.
        kind: LayerKind of the layer.
        geojson: GeoJSON value to render (None for tile layers).
        style: Rendering hints (color, weight, dashArray, fillOpacity).
        feature_id: Identity reported back when the layer is clicked.
        interactive: Whether the layer reacts to clicks.
        url: Tile URL template for base layers.
        attribution: Tile attribution text.
        on_click: Handler invoked with ``feature_id`` on click.
    """

    layer_id: str
    kind: LayerKind
    geojson: Optional[dict] = None
    style: dict = field(default_factory=dict)
    feature_id: Optional[str] = None
    interactive: bool = False
    url: Optional[str] = None
    attribution: str = ""
    on_click: Optional[Callable[[str], None]] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        return {
            "layer_id": self.layer_id,
            "kind": self.kind.value,
            "geojson": self.geojson,
            "style": dict(self.style),
            "feature_id": self.feature_id,
            "interactive": self.interactive,
            "url": self.url,
            "attribution": self.attribution,
        }


@dataclass
class ViewportFocusRequest:
    """One-shot instruction to recenter the map, optionally fitting a box."""

    lat: float
    lon: float
    zoom: Optional[int] = None
    bounding_box: Optional[BoundingBox] = None

    @classmethod
    def from_bounding_box(cls, bbox: BoundingBox, zoom: Optional[int] = None) -> "ViewportFocusRequest":
        lat, lon = bbox.center
        return cls(lat=lat, lon=lon, zoom=zoom, bounding_box=bbox)


@dataclass
class Viewport:
    """Current framing of the map widget."""

    lat: float = 20.0
    lon: float = 10.0
    zoom: int = 2
    bounds: Optional[BoundingBox] = None
    padding: tuple[int, int] = (0, 0)
    animate: bool = True

    def to_dict(self) -> dict:
        return {
            "lat": self.lat,
            "lon": self.lon,
            "zoom": self.zoom,
            "bounds": list(self.bounds) if self.bounds else None,
            "padding": list(self.padding),
            "animate": self.animate,
        }
