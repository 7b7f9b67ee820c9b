"""CanvasMap - in-memory map widget holding the rendered layer set and view.

The browser renderer draws whatever ``snapshot()`` describes; the
reconciler only talks to the ``MapWidget`` protocol.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from loguru import logger

from aoimap.layers.geometry import BoundingBox
from aoimap.layers.layer import MapLayer, Viewport

ShapeDrawnHandler = Callable[[dict], None]


class MapWidget(Protocol):
    """Commands the reconciler issues to a map widget."""

    def add_layer(self, layer: MapLayer) -> None: ...

    def remove_layer(self, layer_id: str) -> bool: ...

    def list_layers(self) -> list[MapLayer]: ...

    def fit_bounds(self, bounds: BoundingBox, padding: tuple[int, int], animate: bool) -> None: ...

    def set_view(self, lat: float, lon: float, zoom: int) -> None: ...


class CanvasMap:
    """Registry of rendered layers plus the current viewport."""

    MIN_ZOOM = 0
    MAX_ZOOM = 18

    def __init__(self, lat: float = 20.0, lon: float = 10.0, zoom: int = 2) -> None:
        self._layers: dict[str, MapLayer] = {}
        self._draw_handlers: list[ShapeDrawnHandler] = []
        self.view = Viewport(lat=lat, lon=lon, zoom=zoom)

    # ------------------------------------------------------------------ #
    #  Layers
    # ------------------------------------------------------------------ #

    def add_layer(self, layer: MapLayer) -> None:
        """Add a layer.

        Raises:
            ValueError: If a layer with the same id is already on the map.
        """
        if layer.layer_id in self._layers:
            raise ValueError(f"Layer already on map: {layer.layer_id}")
        self._layers[layer.layer_id] = layer

    def remove_layer(self, layer_id: str) -> bool:
        """Remove a layer. Returns False if it wasn't on the map."""
        return self._layers.pop(layer_id, None) is not None

    def get_layer(self, layer_id: str) -> Optional[MapLayer]:
        return self._layers.get(layer_id)

    def list_layers(self) -> list[MapLayer]:
        """Layers in draw order (first added is drawn first)."""
        return list(self._layers.values())

    # ------------------------------------------------------------------ #
    #  Viewport
    # ------------------------------------------------------------------ #

    def fit_bounds(self, bounds: BoundingBox, padding: tuple[int, int] = (0, 0), animate: bool = True) -> None:
        """Frame ``bounds``; the view centre moves to the box centre."""
        lat, lon = bounds.center
        self.view = Viewport(
            lat=lat,
            lon=lon,
            zoom=self.view.zoom,
            bounds=bounds,
            padding=tuple(padding),
            animate=animate,
        )

    def set_view(self, lat: float, lon: float, zoom: int) -> None:
        self.view = Viewport(lat=lat, lon=lon, zoom=self._clamp(zoom))

    def zoom_in(self) -> int:
        self.view.zoom = self._clamp(self.view.zoom + 1)
        return self.view.zoom

    def zoom_out(self) -> int:
        self.view.zoom = self._clamp(self.view.zoom - 1)
        return self.view.zoom

    def _clamp(self, zoom: int) -> int:
        return max(self.MIN_ZOOM, min(self.MAX_ZOOM, int(zoom)))

    # ------------------------------------------------------------------ #
    #  Events
    # ------------------------------------------------------------------ #

    def on_shape_drawn(self, handler: ShapeDrawnHandler) -> None:
        """Subscribe to shape-drawn events (payload: bare geometry)."""
        self._draw_handlers.append(handler)

    def draw(self, geometry: dict) -> None:
        """Emit a shape-drawn event, as the draw toolbar does on completion."""
        for handler in list(self._draw_handlers):
            handler(geometry)

    def click(self, layer_id: str) -> bool:
        """Emit a click on a layer.

        Returns:
            True if an interactive layer handled the click.
        """
        layer = self._layers.get(layer_id)
        if layer is None or not layer.interactive or layer.on_click is None:
            logger.debug(f"Click on non-interactive layer {layer_id}")
            return False
        layer.on_click(layer.feature_id)
        return True

    def snapshot(self) -> dict:
        return {
            "view": self.view.to_dict(),
            "layers": [layer.to_dict() for layer in self._layers.values()],
        }
