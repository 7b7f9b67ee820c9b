"""MapReconciler - keeps the widget's layers in line with the feature set.

Feature layers are rebuilt from scratch on every feature-set or selection
change. The preview outline and the base tile layer are each held to at
most one instance.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

from loguru import logger

from aoimap.drafts.models import DraftAOI
from aoimap.features.models import AOIFeature
from aoimap.layers.basemaps import get_base_map
from aoimap.layers.canvas import MapWidget
from aoimap.layers.geometry import compute_bounding_box
from aoimap.layers.layer import LayerKind, MapLayer, ViewportFocusRequest

SELECTED_COLOR = "#f97316"
FEATURE_COLOR = "#3b82f6"
PREVIEW_COLOR = "#c05621"
DRAFT_COLOR = "#7e786f"

PREVIEW_LAYER_ID = "preview"

FEATURE_STYLE = {"weight": 3, "fillOpacity": 0.2}
PREVIEW_STYLE = {"color": PREVIEW_COLOR, "weight": 2, "dashArray": "4 4", "fillOpacity": 0.05}
DRAFT_STYLE = {"color": DRAFT_COLOR, "weight": 2, "fillOpacity": 0.1}


class MapReconciler:
    """Derives display layers from features, selection, preview and base map."""

    def __init__(
        self,
        widget: MapWidget,
        on_select: Callable[[str], None],
        base_layer: str = "streets",
        fit_padding: int = 20,
        focus_zoom: int = 12,
    ) -> None:
        """Initialize the reconciler and put the base layer on the widget.

        Args:
            widget: Map widget receiving layer and view commands
            on_select: Called with a feature id when its layer is clicked
            base_layer: Initial base map id
            fit_padding: Pixel padding for bounds fitting
            focus_zoom: Zoom used when a focus request carries none
        """
        self.widget = widget
        self.on_select = on_select
        self.fit_padding = (fit_padding, fit_padding)
        self.focus_zoom = focus_zoom

        self._features: list[AOIFeature] = []
        self._selected_id: Optional[str] = None
        self._feature_layer_ids: list[str] = []
        self._draft_layer_ids: list[str] = []
        self._preview: Optional[dict] = None
        self.base_layer = ""

        self.set_base_layer(base_layer)

    @property
    def preview(self) -> Optional[dict]:
        return self._preview

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    # ------------------------------------------------------------------ #
    #  Feature layers
    # ------------------------------------------------------------------ #

    def set_features(self, features: Sequence[AOIFeature]) -> None:
        """Replace the feature set; clears any preview outline and redraws."""
        self._features = list(features)
        self.set_preview(None)
        self.redraw()

    def set_selection(self, feature_id: Optional[str]) -> None:
        self._selected_id = feature_id
        self.redraw()

    def redraw(self) -> None:
        """Clear every feature layer, then add one per feature."""
        for layer_id in self._feature_layer_ids:
            self.widget.remove_layer(layer_id)
        self._feature_layer_ids = []

        for feature in self._features:
            layer = self._feature_layer(feature)
            self.widget.add_layer(layer)
            self._feature_layer_ids.append(layer.layer_id)

    def _feature_layer(self, feature: AOIFeature) -> MapLayer:
        color = SELECTED_COLOR if feature.id == self._selected_id else FEATURE_COLOR
        return MapLayer(
            layer_id=f"feature:{feature.id}",
            kind=LayerKind.FEATURE,
            geojson=feature.geometry,
            style={"color": color, **FEATURE_STYLE},
            feature_id=feature.id,
            interactive=True,
            on_click=self.on_select,
        )

    # ------------------------------------------------------------------ #
    #  Draft layers
    # ------------------------------------------------------------------ #

    def set_drafts(self, drafts: Iterable[DraftAOI]) -> None:
        """Render every visible draft; hidden drafts get no layer."""
        for layer_id in self._draft_layer_ids:
            self.widget.remove_layer(layer_id)
        self._draft_layer_ids = []

        for draft in drafts:
            if not draft.visible:
                continue
            layer = MapLayer(
                layer_id=f"draft:{draft.id}",
                kind=LayerKind.DRAFT,
                geojson=draft.geojson,
                style=dict(DRAFT_STYLE),
            )
            self.widget.add_layer(layer)
            self._draft_layer_ids.append(layer.layer_id)

    # ------------------------------------------------------------------ #
    #  Preview outline
    # ------------------------------------------------------------------ #

    def set_preview(self, geojson: Optional[dict]) -> None:
        """Show ``geojson`` as the dashed outline, replacing any previous one.

        A non-empty extent is framed immediately, without animation.
        """
        self.widget.remove_layer(PREVIEW_LAYER_ID)
        self._preview = None

        if geojson is None:
            return

        self.widget.add_layer(MapLayer(
            layer_id=PREVIEW_LAYER_ID,
            kind=LayerKind.PREVIEW,
            geojson=geojson,
            style=dict(PREVIEW_STYLE),
        ))
        self._preview = geojson

        bbox = compute_bounding_box(geojson)
        if bbox is not None:
            self.widget.fit_bounds(bbox, padding=self.fit_padding, animate=False)

    # ------------------------------------------------------------------ #
    #  Viewport
    # ------------------------------------------------------------------ #

    def focus(self, request: ViewportFocusRequest) -> None:
        """Recenter on the request; a bounding box, if present, wins the framing."""
        zoom = request.zoom if request.zoom is not None else self.focus_zoom
        self.widget.set_view(request.lat, request.lon, zoom)

        if request.bounding_box is not None:
            self.widget.fit_bounds(request.bounding_box, padding=self.fit_padding, animate=False)

    # ------------------------------------------------------------------ #
    #  Base layer
    # ------------------------------------------------------------------ #

    def set_base_layer(self, base_id: str) -> None:
        """Swap the base tile layer; never leaves more than one on the map.

        Raises:
            ValueError: If ``base_id`` is not a known base map.
        """
        base = get_base_map(base_id)

        for layer in self.widget.list_layers():
            if layer.kind == LayerKind.BASE:
                self.widget.remove_layer(layer.layer_id)

        self.widget.add_layer(MapLayer(
            layer_id=f"base:{base.id}",
            kind=LayerKind.BASE,
            url=base.url,
            attribution=base.attribution,
            style={"maxZoom": base.max_zoom, "subdomains": list(base.subdomains)},
        ))
        self.base_layer = base.id
        logger.info(f"Base layer switched to {base.id}")
