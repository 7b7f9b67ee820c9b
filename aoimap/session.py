"""AoiSession - the application context shared by every map control.

Holds the authoritative feature list and selection, and is the only writer
of either. The reconciler it owns writes display layers only. Controls get
the session (and through it the map) passed in; nothing is module-global.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from loguru import logger

from aoimap.config import Settings
from aoimap.drafts import DraftAOI, DraftStore
from aoimap.errors import MalformedInputError
from aoimap.features.cache import JsonFileCache
from aoimap.features.models import DEFAULT_FEATURE_NAME, AOIFeature, FeatureDraft, StoreResult
from aoimap.features.remote import RemoteFeatureStore, create_remote_store
from aoimap.features.store import FeatureStore
from aoimap.intake.geocoder import GeocodeHit, NominatimGeocoder
from aoimap.intake.search import SearchController
from aoimap.intake.upload import UploadCandidate, read_upload
from aoimap.layers.canvas import CanvasMap
from aoimap.layers.geometry import extract_geometry
from aoimap.layers.layer import ViewportFocusRequest
from aoimap.layers.reconciler import MapReconciler


class AoiSession:
    """Features, drafts, search and the map, wired together."""

    def __init__(
        self,
        store: FeatureStore,
        drafts: DraftStore,
        search: SearchController,
        canvas: CanvasMap,
        config: Settings,
    ):
        self.store = store
        self.drafts = drafts
        self.search = search
        self.canvas = canvas
        self.config = config

        self.features: list[AOIFeature] = []
        self.selected_id: Optional[str] = None
        self.pending_geometry: Optional[dict] = None

        self.reconciler = MapReconciler(
            canvas,
            on_select=self.select_feature,
            base_layer=config.default_base_layer,
            fit_padding=config.fit_padding,
            focus_zoom=config.focus_zoom,
        )
        canvas.on_shape_drawn(self.handle_shape_drawn)

    async def load(self) -> None:
        """Load saved features and drafts and render them."""
        self.features = await self.store.get_features()
        self.drafts.load_from_disk()
        self.reconciler.set_features(self.features)
        self.reconciler.set_drafts(self.drafts.drafts)
        logger.info(f"Session loaded: {len(self.features)} features, {len(self.drafts)} drafts")

    def _set_features(self, features: list[AOIFeature]) -> None:
        self.features = features
        if self.selected_id is not None and all(f.id != self.selected_id for f in features):
            self.selected_id = None
            self.reconciler.set_selection(None)
        self.reconciler.set_features(features)

    # ==================
    # Selection
    # ==================

    def select_feature(self, feature_id: Optional[str]) -> None:
        self.selected_id = feature_id
        self.reconciler.set_selection(feature_id)

    def get_feature(self, feature_id: str) -> Optional[AOIFeature]:
        for feature in self.features:
            if feature.id == feature_id:
                return feature
        return None

    # ==================
    # Save candidates
    # ==================

    def handle_shape_drawn(self, geometry: dict) -> None:
        """A shape was drawn; stage it for the save dialog."""
        normalized = extract_geometry(geometry)
        if normalized is None:
            logger.warning("Ignoring drawn shape without a recognised geometry")
            return
        self.pending_geometry = normalized

    def discard_pending(self) -> None:
        self.pending_geometry = None

    async def save_pending(self, name: Optional[str] = None) -> Optional[StoreResult[AOIFeature]]:
        """Save the staged geometry under ``name``.

        Returns:
            The tagged store result, or None if nothing was staged.
        """
        if self.pending_geometry is None:
            return None
        draft = FeatureDraft(
            geometry=self.pending_geometry,
            name=(name or "").strip() or DEFAULT_FEATURE_NAME,
        )
        result = await self.save(draft)
        self.pending_geometry = None
        return result

    async def save(self, draft: FeatureDraft) -> StoreResult[AOIFeature]:
        """Save a feature and put it at the top of the displayed list.

        A record that only reached the local fallback is displayed too.
        """
        result = await self.store.save(draft)
        self._set_features([result.value, *self.features])
        return result

    # ==================
    # Saved features
    # ==================

    async def delete_feature(self, feature_id: str) -> bool:
        """Delete a feature; it leaves the display whichever store took the delete."""
        deleted = await self.store.delete_feature(feature_id)
        self._set_features([f for f in self.features if f.id != feature_id])
        return deleted

    async def update_feature(self, feature_id: str, updates: dict) -> Optional[AOIFeature]:
        """Patch a feature. Returns None if neither store holds it."""
        result = await self.store.update(feature_id, updates)
        if result.value is None:
            return None
        self.features = [result.value if f.id == feature_id else f for f in self.features]
        self.reconciler.set_features(self.features)
        return result.value

    async def refresh(self) -> list[AOIFeature]:
        self._set_features(await self.store.get_features())
        return self.features

    # ==================
    # Upload
    # ==================

    def upload(self, filename: str, content: Union[str, bytes]) -> UploadCandidate:
        """Preview an uploaded file and stage its geometry for saving.

        Raises:
            MalformedInputError, UnsupportedFormatError: With no state change.
        """
        candidate = read_upload(filename, content, focus_zoom=self.config.focus_zoom)
        self.reconciler.set_preview(candidate.geojson)
        if candidate.focus is not None:
            self.reconciler.focus(candidate.focus)
        self.pending_geometry = candidate.geometry
        return candidate

    # ==================
    # Search
    # ==================

    def select_search_result(self, hit: GeocodeHit) -> ViewportFocusRequest:
        focus = self.search.select(hit)
        self.reconciler.focus(focus)
        return focus

    def apply_search_outline(self) -> bool:
        """Show the selected result's outline. Returns False if it has none."""
        outline = self.search.outline()
        if outline is None:
            return False
        self.reconciler.set_preview(outline)
        return True

    async def confirm_search(self) -> Optional[StoreResult[AOIFeature]]:
        """Save the selected result's outline as a feature."""
        draft = self.search.confirm()
        if draft is None:
            return None
        result = await self.save(draft)
        self.reconciler.set_preview(None)
        return result

    def clear_search(self) -> None:
        self.search.clear()
        self.reconciler.set_preview(None)

    # ==================
    # Drafts
    # ==================

    def add_draft(self, geojson: dict, name: Optional[str] = None) -> DraftAOI:
        draft = self.drafts.create_draft(geojson, name=name)
        self.reconciler.set_drafts(self.drafts.drafts)
        return draft

    def toggle_draft(self, draft_id: str) -> None:
        self.drafts.toggle_visibility(draft_id)
        self.reconciler.set_drafts(self.drafts.drafts)

    def update_draft(self, draft: DraftAOI) -> None:
        self.drafts.update_draft(draft)
        self.reconciler.set_drafts(self.drafts.drafts)

    def remove_draft(self, draft_id: str) -> None:
        self.drafts.remove_draft(draft_id)
        self.reconciler.set_drafts(self.drafts.drafts)

    async def save_draft(self, draft_id: str, name: Optional[str] = None) -> Optional[StoreResult[AOIFeature]]:
        """Save a copy of a draft as a feature; the draft itself stays.

        Raises:
            MalformedInputError: If the draft holds no recognised geometry.
        """
        draft = self.drafts.get_draft(draft_id)
        if draft is None:
            return None
        geometry = extract_geometry(draft.geojson)
        if geometry is None:
            raise MalformedInputError("Draft has no valid GeoJSON geometry")
        return await self.save(FeatureDraft(
            geometry=geometry,
            name=name or draft.name or DEFAULT_FEATURE_NAME,
        ))

    # ==================
    # Map
    # ==================

    def set_base_layer(self, base_id: str) -> None:
        self.reconciler.set_base_layer(base_id)

    def map_state(self) -> dict:
        return {
            **self.canvas.snapshot(),
            "base_layer": self.reconciler.base_layer,
            "selected_id": self.selected_id,
            "pending": self.pending_geometry is not None,
        }


def create_session(config: Settings, remote: Optional[RemoteFeatureStore] = None) -> AoiSession:
    """Build a session from settings.

    Args:
        config: Application settings
        remote: Remote store override; defaults to ``config.remote_backend``
    """
    cache = JsonFileCache(Path(config.cache_dir))
    store = FeatureStore(
        remote if remote is not None else create_remote_store(config),
        cache,
        timeout=config.remote_timeout,
    )
    geocoder = NominatimGeocoder(
        config.nominatim_url,
        config.geocoder_user_agent,
        limit=config.geocoder_limit,
    )
    search = SearchController(
        geocoder,
        delay=config.search_debounce_seconds,
        min_chars=config.search_min_chars,
        max_shown=config.search_results_shown,
        focus_zoom=config.search_focus_zoom,
    )
    return AoiSession(store, DraftStore(cache), search, CanvasMap(), config)
