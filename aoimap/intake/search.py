"""SearchController - debounced place search feeding selection and focus.

Keystrokes arrive through ``on_query_changed``. Each one cancels the
pending timer, so only the last query in a burst reaches the geocoder.
Selecting a hit keeps its raw geojson for a later, explicit confirm.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from aoimap.errors import MalformedInputError
from aoimap.features.models import FeatureDraft
from aoimap.intake.geocoder import GeocodeHit, NominatimGeocoder
from aoimap.layers.geometry import BoundingBox, extract_geometry
from aoimap.layers.layer import ViewportFocusRequest

SEARCH_FEATURE_NAME = "Search AOI"


@dataclass
class SearchSelection:
    """The geocoder hit the user picked. Not persisted."""

    display_name: str
    lat: float
    lon: float
    bounding_box: Optional[BoundingBox] = None
    geojson: Optional[dict] = None


class SearchController:
    """Owns query text, results and the current selection."""

    def __init__(
        self,
        geocoder: NominatimGeocoder,
        delay: float = 0.2,
        min_chars: int = 2,
        max_shown: int = 6,
        focus_zoom: int = 13,
    ):
        self.geocoder = geocoder
        self.delay = delay
        self.min_chars = min_chars
        self.max_shown = max_shown
        self.focus_zoom = focus_zoom

        self.query = ""
        self.results: list[GeocodeHit] = []
        self.selection: Optional[SearchSelection] = None
        self.searching = False
        self._pending: Optional[asyncio.Task] = None

    @property
    def visible_results(self) -> list[GeocodeHit]:
        return self.results[: self.max_shown]

    # ==================
    # Query input
    # ==================

    def on_query_changed(self, text: str) -> Optional[asyncio.Task]:
        """Handle a keystroke. Must be called from a running event loop.

        Returns:
            The scheduled search task, or None if the query is too short.
        """
        self.query = text
        self._cancel_pending()

        if not text.strip():
            self.selection = None

        if len(text.strip()) < self.min_chars:
            self.results = []
            return None

        self._pending = asyncio.get_running_loop().create_task(self._debounced(text))
        return self._pending

    async def submit(self) -> list[GeocodeHit]:
        """Search the current query now, skipping the debounce."""
        self._cancel_pending()
        if len(self.query.strip()) < self.min_chars:
            return []
        return await self._run(self.query)

    async def wait(self) -> None:
        """Wait for the pending debounced search, if any, to finish."""
        task = self._pending
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _debounced(self, text: str) -> None:
        await asyncio.sleep(self.delay)
        await self._run(text)

    async def _run(self, text: str) -> list[GeocodeHit]:
        logger.debug(f"Searching '{text}'")
        self.selection = None
        self.searching = True
        try:
            self.results = await self.geocoder.search(text)
        finally:
            self.searching = False
        return self.results

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    # ==================
    # Selection
    # ==================

    def select(self, hit: GeocodeHit) -> ViewportFocusRequest:
        """Adopt ``hit`` as the selection and return where to frame the map."""
        self._cancel_pending()
        self.selection = SearchSelection(
            display_name=hit.display_name,
            lat=hit.lat,
            lon=hit.lon,
            bounding_box=hit.bounding_box,
            geojson=hit.geojson,
        )
        self.query = hit.display_name
        self.results = []
        return ViewportFocusRequest(
            lat=hit.lat,
            lon=hit.lon,
            zoom=self.focus_zoom,
            bounding_box=hit.bounding_box,
        )

    def clear(self) -> None:
        self._cancel_pending()
        self.query = ""
        self.results = []
        self.selection = None

    def outline(self) -> Optional[dict]:
        """Raw geojson of the selection, for preview only."""
        return self.selection.geojson if self.selection else None

    def confirm(self) -> Optional[FeatureDraft]:
        """Turn the selection's outline into a save candidate.

        Returns:
            A FeatureDraft with a normalized geometry, or None if nothing
            with an outline is selected.

        Raises:
            MalformedInputError: If the outline holds no recognised geometry.
        """
        if self.selection is None or not self.selection.geojson:
            return None

        geometry = extract_geometry(self.selection.geojson)
        if geometry is None:
            raise MalformedInputError("Search result outline has no valid GeoJSON geometry")

        return FeatureDraft(
            geometry=geometry,
            name=self.selection.display_name or self.query or SEARCH_FEATURE_NAME,
            properties={},
        )
