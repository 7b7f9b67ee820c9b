"""Normalize GeoJSON-like input into canonical geometries and bounding boxes.

Accepts Feature, FeatureCollection and bare Geometry dicts as produced by
``json.loads``. Coordinates follow GeoJSON convention: [lng, lat].
Pure functions only; nothing here raises for unrecognised input.
"""

from __future__ import annotations

from typing import Any, NamedTuple, Optional

# Bare geometry types accepted as canonical AOI geometries.
GEOMETRY_TYPES = (
    "Point",
    "LineString",
    "Polygon",
    "MultiLineString",
    "MultiPolygon",
    "GeometryCollection",
)

_POSITION_TYPES = (
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
)


class BoundingBox(NamedTuple):
    """Geographic extent in (south, north, west, east) order.

    This is the geocoder's ordering, not GeoJSON's
    [minLon, minLat, maxLon, maxLat].
    """

    south: float
    north: float
    west: float
    east: float

    @property
    def center(self) -> tuple[float, float]:
        """(lat, lng) midpoint of the box."""
        return ((self.south + self.north) / 2, (self.west + self.east) / 2)

    @classmethod
    def from_sequence(cls, values) -> Optional["BoundingBox"]:
        """Build from a 4-item [south, north, west, east] sequence of numbers or strings."""
        if values is None or len(values) != 4:
            return None
        try:
            return cls(*(float(v) for v in values))
        except (TypeError, ValueError):
            return None


def extract_geometry(obj: Any) -> Optional[dict]:
    """Return the single canonical geometry held by ``obj``.

    A FeatureCollection yields the geometry of its first feature only; the
    remaining features are ignored. A Feature yields its geometry. Only
    geometries of a recognised type are returned, unchanged, whether bare
    or wrapped.

    Returns:
        The geometry dict, or None if the shape is unsupported.
    """
    if not isinstance(obj, dict):
        return None

    kind = obj.get("type")

    if kind == "FeatureCollection":
        features = obj.get("features")
        if isinstance(features, list) and features:
            first = features[0]
            return _bare_geometry(first.get("geometry") if isinstance(first, dict) else None)
        return None

    if kind == "Feature":
        return _bare_geometry(obj.get("geometry"))

    return _bare_geometry(obj)


def _bare_geometry(obj: Any) -> Optional[dict]:
    if isinstance(obj, dict) and obj.get("type") in GEOMETRY_TYPES:
        return obj
    return None


def compute_bounding_box(obj: Any) -> Optional[BoundingBox]:
    """Compute the (south, north, west, east) extent of any GeoJSON value.

    Walks nested Features, FeatureCollections and GeometryCollections and
    collects every coordinate pair.

    Returns:
        BoundingBox, or None if no coordinates were found or the structure
        is broken somewhere along the way.
    """
    points: list[tuple[float, float]] = []
    try:
        _collect(obj, points)
    except (AttributeError, IndexError, KeyError, TypeError, ValueError):
        return None

    if not points:
        return None

    lats = [p[0] for p in points]
    lngs = [p[1] for p in points]
    return BoundingBox(min(lats), max(lats), min(lngs), max(lngs))


def geometry_type(obj: Any) -> str:
    """Display label for the geometry held by ``obj``."""
    geometry = extract_geometry(obj)
    if geometry is None:
        return "Unknown"
    return geometry["type"]


def _collect(node: Any, out: list[tuple[float, float]]) -> None:
    if not node:
        return

    kind = node["type"]

    if kind == "Feature":
        _collect(node.get("geometry"), out)
    elif kind == "FeatureCollection":
        for feature in node["features"]:
            _collect(feature.get("geometry") if feature else None, out)
    elif kind == "GeometryCollection":
        for geometry in node["geometries"]:
            _collect(geometry, out)
    elif kind in _POSITION_TYPES:
        _collect_positions(node["coordinates"], out)


def _collect_positions(coords: Any, out: list[tuple[float, float]]) -> None:
    """Append (lat, lng) for every position in an arbitrarily nested array."""
    if _is_position(coords):
        out.append((float(coords[1]), float(coords[0])))
        return
    if not isinstance(coords, (list, tuple)):
        raise TypeError(f"Invalid coordinate: {coords!r}")
    for item in coords:
        _collect_positions(item, out)


def _is_position(coords: Any) -> bool:
    return (
        isinstance(coords, (list, tuple))
        and len(coords) >= 2
        and isinstance(coords[0], (int, float))
        and not isinstance(coords[0], bool)
    )
