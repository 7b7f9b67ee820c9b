"""Map layer system - geometry normalization and display reconciliation.

Coordinates are GeoJSON [lng, lat]; bounding boxes and view centres are
latitude-first.
"""

from aoimap.layers.canvas import CanvasMap, MapWidget
from aoimap.layers.geometry import BoundingBox, compute_bounding_box, extract_geometry
from aoimap.layers.layer import LayerKind, MapLayer, Viewport, ViewportFocusRequest
from aoimap.layers.reconciler import MapReconciler

__all__ = [
    "BoundingBox",
    "CanvasMap",
    "LayerKind",
    "MapLayer",
    "MapReconciler",
    "MapWidget",
    "Viewport",
    "ViewportFocusRequest",
    "compute_bounding_box",
    "extract_geometry",
]
