"""DraftStore - ordered draft collection with full-snapshot persistence."""

from __future__ import annotations

import json
import uuid
from dataclasses import replace
from typing import Any, Optional

from loguru import logger

from aoimap.drafts.models import DraftAOI
from aoimap.features.cache import DRAFTS_CACHE_KEY, JsonFileCache


class DraftStore:
    """Mapping of draft id to DraftAOI, iterated in insertion order.

    Every mutation rewrites the whole collection to the cache.
    """

    def __init__(self, cache: JsonFileCache, cache_key: str = DRAFTS_CACHE_KEY):
        self.cache = cache
        self.cache_key = cache_key
        self._drafts: dict[str, DraftAOI] = {}

    @property
    def drafts(self) -> tuple[DraftAOI, ...]:
        """Current snapshot of the collection."""
        return tuple(self._drafts.values())

    def __len__(self) -> int:
        return len(self._drafts)

    def get_draft(self, draft_id: str) -> Optional[DraftAOI]:
        return self._drafts.get(draft_id)

    def visible_drafts(self) -> list[DraftAOI]:
        return [d for d in self._drafts.values() if d.visible]

    # ==================
    # Mutations
    # ==================

    def create_draft(self, geojson: Any, name: Optional[str] = None) -> DraftAOI:
        """Build a draft with a fresh id and timestamp, and add it."""
        draft = DraftAOI(id=uuid.uuid4().hex, geojson=geojson, name=name)
        self.add_draft(draft)
        return draft

    def add_draft(self, draft: DraftAOI) -> tuple[DraftAOI, ...]:
        """Add a draft (always visible). An existing id is replaced in place."""
        self._commit({**self._drafts, draft.id: replace(draft, visible=True)})
        logger.info(f"Added draft {draft.id}")
        return self.drafts

    def update_draft(self, draft: DraftAOI) -> tuple[DraftAOI, ...]:
        """Replace the draft with the same id; unknown ids change nothing."""
        self._commit({
            k: (draft if k == draft.id else v) for k, v in self._drafts.items()
        })
        return self.drafts

    def remove_draft(self, draft_id: str) -> tuple[DraftAOI, ...]:
        self._commit({k: v for k, v in self._drafts.items() if k != draft_id})
        return self.drafts

    def toggle_visibility(self, draft_id: str) -> tuple[DraftAOI, ...]:
        self._commit({
            k: (replace(v, visible=not v.visible) if k == draft_id else v)
            for k, v in self._drafts.items()
        })
        return self.drafts

    def _commit(self, drafts: dict[str, DraftAOI]) -> None:
        """Adopt ``drafts`` and persist them; a failed write is logged only."""
        self._drafts = drafts
        try:
            self.cache.set(
                self.cache_key,
                json.dumps([d.to_dict() for d in drafts.values()]),
            )
        except OSError as e:
            logger.error(f"Error writing draft cache: {e}")

    # ==================
    # Disk
    # ==================

    def load_from_disk(self) -> tuple[DraftAOI, ...]:
        """Replace the collection with the stored snapshot.

        Nothing stored, or a snapshot that fails to parse, yields an empty
        collection; a corrupt snapshot is logged and discarded.
        """
        raw = self.cache.get(self.cache_key)
        if not raw:
            self._drafts = {}
            return self.drafts

        try:
            items = [DraftAOI.from_dict(item) for item in json.loads(raw)]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding corrupt draft cache: {e}")
            self._drafts = {}
            return self.drafts

        self._drafts = {d.id: d for d in items}
        logger.info(f"Loaded {len(self._drafts)} drafts")
        return self.drafts
