"""Unit tests for DraftStore - ordered drafts with full-snapshot persistence."""

from __future__ import annotations

import json

import pytest

from aoimap.drafts import DraftAOI, DraftStore
from aoimap.features.cache import DRAFTS_CACHE_KEY

pytestmark = pytest.mark.unit


@pytest.fixture
def drafts(cache):
    return DraftStore(cache)


def _stored(cache) -> list[dict]:
    return json.loads(cache.get(DRAFTS_CACHE_KEY))


class TestDraftMutations:

    def test_add_persists_snapshot(self, drafts, cache, square):
        drafts.add_draft(DraftAOI(id="d1", geojson=square))
        assert [d["id"] for d in _stored(cache)] == ["d1"]

    def test_add_forces_visible(self, drafts, square):
        drafts.add_draft(DraftAOI(id="d1", geojson=square, visible=False))
        assert drafts.get_draft("d1").visible is True

    def test_insertion_order(self, drafts, square):
        for draft_id in ("c", "a", "b"):
            drafts.add_draft(DraftAOI(id=draft_id, geojson=square))
        assert [d.id for d in drafts.drafts] == ["c", "a", "b"]

    def test_add_existing_id_replaces_in_place(self, drafts, square):
        drafts.add_draft(DraftAOI(id="a", geojson=square))
        drafts.add_draft(DraftAOI(id="b", geojson=square))
        drafts.add_draft(DraftAOI(id="a", geojson=square, name="again"))
        assert [d.id for d in drafts.drafts] == ["a", "b"]
        assert drafts.get_draft("a").name == "again"

    def test_create_draft_assigns_id(self, drafts, square):
        draft = drafts.create_draft(square, name="Sketch")
        assert draft.id
        assert draft.visible
        assert drafts.get_draft(draft.id).name == "Sketch"

    def test_update(self, drafts, cache, square):
        drafts.add_draft(DraftAOI(id="a", geojson=square))
        drafts.update_draft(DraftAOI(id="a", geojson=square, name="renamed"))
        assert drafts.get_draft("a").name == "renamed"
        assert _stored(cache)[0]["name"] == "renamed"

    def test_update_unknown_is_noop(self, drafts, square):
        drafts.add_draft(DraftAOI(id="a", geojson=square))
        drafts.update_draft(DraftAOI(id="zzz", geojson=square))
        assert [d.id for d in drafts.drafts] == ["a"]

    def test_remove(self, drafts, cache, square):
        drafts.add_draft(DraftAOI(id="a", geojson=square))
        drafts.add_draft(DraftAOI(id="b", geojson=square))
        drafts.remove_draft("a")
        assert [d.id for d in drafts.drafts] == ["b"]
        assert [d["id"] for d in _stored(cache)] == ["b"]

    def test_remove_unknown_is_noop(self, drafts, square):
        drafts.add_draft(DraftAOI(id="a", geojson=square))
        drafts.remove_draft("nope")
        assert len(drafts) == 1

    def test_toggle_twice_restores(self, drafts, square):
        drafts.add_draft(DraftAOI(id="a", geojson=square))
        drafts.toggle_visibility("a")
        assert drafts.get_draft("a").visible is False
        assert drafts.visible_drafts() == []
        drafts.toggle_visibility("a")
        assert drafts.get_draft("a").visible is True

    def test_snapshot_is_not_live(self, drafts, square):
        before = drafts.drafts
        drafts.add_draft(DraftAOI(id="a", geojson=square))
        assert before == ()


class TestDraftDisk:

    def test_load_round_trip(self, drafts, cache, square):
        drafts.add_draft(DraftAOI(id="a", geojson=square, name="one"))
        drafts.add_draft(DraftAOI(id="b", geojson=square))
        drafts.toggle_visibility("b")

        reloaded = DraftStore(cache).load_from_disk()
        assert [d.id for d in reloaded] == ["a", "b"]
        assert reloaded[0].name == "one"
        assert reloaded[1].visible is False

    def test_load_nothing_stored(self, drafts):
        assert drafts.load_from_disk() == ()

    def test_load_corrupt(self, drafts, cache):
        cache.set(DRAFTS_CACHE_KEY, "[{broken")
        assert drafts.load_from_disk() == ()

    def test_load_wrong_shape(self, drafts, cache):
        cache.set(DRAFTS_CACHE_KEY, json.dumps([{"no_id": True}]))
        assert drafts.load_from_disk() == ()

    def test_write_failure_is_absorbed(self, drafts, cache, square, monkeypatch):
        def failing_set(key, value):
            raise OSError("disk full")

        monkeypatch.setattr(cache, "set", failing_set)
        drafts.add_draft(DraftAOI(id="a", geojson=square))
        assert [d.id for d in drafts.drafts] == ["a"]
