"""Unit tests for AoiSession - features, selection, intake and drafts wired together."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from aoimap.errors import MalformedInputError, UnsupportedFormatError
from aoimap.features.models import FeatureDraft, ResultSource
from aoimap.intake.geocoder import GeocodeHit
from aoimap.layers import LayerKind
from aoimap.layers.geometry import BoundingBox
from aoimap.layers.reconciler import PREVIEW_LAYER_ID
from aoimap.session import create_session

pytestmark = pytest.mark.unit


def _run(coro):
    """Run an async coroutine synchronously on the current event loop."""
    loop = asyncio.get_event_loop()
    return loop.run_until_complete(coro)


def _feature_layers(session):
    return [l for l in session.canvas.list_layers() if l.kind == LayerKind.FEATURE]


@pytest.fixture
def session(config, remote):
    s = create_session(config, remote=remote)
    s.search.geocoder = AsyncMock()
    _run(s.load())
    return s


class TestFeatures:

    def test_load_renders_saved_features(self, config, remote, square):
        _run(remote.insert({"name": "A", "geometry": square}))
        s = create_session(config, remote=remote)
        _run(s.load())
        assert [f.name for f in s.features] == ["A"]
        assert len(_feature_layers(s)) == 1

    def test_save_prepends(self, session, square):
        _run(session.save(FeatureDraft(geometry=square, name="one")))
        _run(session.save(FeatureDraft(geometry=square, name="two")))
        assert [f.name for f in session.features] == ["two", "one"]

    def test_local_fallback_save_is_displayed(self, session, remote, square):
        remote.fail = True
        result = _run(session.save(FeatureDraft(geometry=square)))
        assert result.source == ResultSource.LOCAL_FALLBACK
        assert session.features[0].is_local
        assert len(_feature_layers(session)) == 1

    def test_click_selects(self, session, square):
        result = _run(session.save(FeatureDraft(geometry=square)))
        session.canvas.click(f"feature:{result.value.id}")
        assert session.selected_id == result.value.id
        assert session.reconciler.selected_id == result.value.id

    def test_delete_clears_selection(self, session, square):
        feature = _run(session.save(FeatureDraft(geometry=square))).value
        session.select_feature(feature.id)
        assert _run(session.delete_feature(feature.id)) is True
        assert session.features == []
        assert session.selected_id is None
        assert _feature_layers(session) == []

    def test_delete_leaves_display_on_remote_failure(self, session, remote, square):
        feature = _run(session.save(FeatureDraft(geometry=square))).value
        remote.fail = True
        assert _run(session.delete_feature(feature.id)) is False
        assert session.features == []

    def test_update(self, session, square):
        feature = _run(session.save(FeatureDraft(geometry=square, name="Old"))).value
        updated = _run(session.update_feature(feature.id, {"name": "New"}))
        assert updated.name == "New"
        assert session.get_feature(feature.id).name == "New"

    def test_update_unknown(self, session):
        assert _run(session.update_feature("missing", {"name": "x"})) is None

    def test_refresh(self, session, remote, square):
        _run(remote.insert({"name": "elsewhere", "geometry": square}))
        assert [f.name for f in _run(session.refresh())] == ["elsewhere"]


class TestDrawAndUpload:

    def test_drawn_shape_is_staged_then_saved(self, session, square):
        session.canvas.draw(square)
        assert session.map_state()["pending"] is True

        result = _run(session.save_pending("  Drawn  "))
        assert result.value.name == "Drawn"
        assert session.pending_geometry is None

    def test_blank_name_uses_default(self, session, square):
        session.canvas.draw(square)
        assert _run(session.save_pending("   ")).value.name == "Unnamed Feature"

    def test_save_pending_with_nothing_staged(self, session):
        assert _run(session.save_pending("x")) is None

    def test_unrecognised_drawing_ignored(self, session):
        session.canvas.draw({"type": "Circle", "radius": 3})
        assert session.pending_geometry is None

    def test_drawn_feature_with_unsupported_geometry_ignored(self, session):
        session.canvas.draw({"type": "Feature", "geometry": {"type": "MultiPoint", "coordinates": [[0, 0]]}})
        assert session.pending_geometry is None

    def test_drawn_feature_is_staged_bare(self, session, square):
        session.canvas.draw({"type": "Feature", "geometry": square, "properties": {}})
        assert session.pending_geometry == square

    def test_upload_previews_and_stages(self, session, square):
        candidate = session.upload("plot.geojson", json.dumps(square))
        assert candidate.geometry == square
        assert session.reconciler.preview == square
        assert session.pending_geometry == square
        assert session.canvas.view.bounds == BoundingBox(51.2, 51.3, 6.5, 6.6)

    def test_failed_upload_changes_nothing(self, session, square):
        session.upload("plot.geojson", json.dumps(square))
        with pytest.raises(UnsupportedFormatError):
            session.upload("plot.kml", "<kml/>")
        with pytest.raises(MalformedInputError):
            session.upload("plot.geojson", "nope")
        assert session.reconciler.preview == square
        assert session.pending_geometry == square

    def test_saving_upload_clears_preview(self, session, square):
        session.upload("plot.geojson", json.dumps(square))
        _run(session.save_pending("Plot"))
        assert session.canvas.get_layer(PREVIEW_LAYER_ID) is None


class TestSearch:

    def _hit(self, geojson=None):
        return GeocodeHit(
            display_name="Düsseldorf",
            lat=51.22,
            lon=6.77,
            bounding_box=BoundingBox(51.12, 51.35, 6.68, 6.94),
            geojson=geojson,
        )

    def test_select_focuses_map(self, session):
        session.select_search_result(self._hit())
        view = session.canvas.view
        assert view.zoom == 13
        assert view.bounds == BoundingBox(51.12, 51.35, 6.68, 6.94)

    def test_outline_then_confirm(self, session, square):
        session.select_search_result(self._hit(geojson=square))
        assert session.apply_search_outline() is True
        assert session.reconciler.preview == square

        result = _run(session.confirm_search())
        assert result.value.name == "Düsseldorf"
        assert session.reconciler.preview is None
        assert session.features[0].id == result.value.id

    def test_outline_missing(self, session):
        session.select_search_result(self._hit())
        assert session.apply_search_outline() is False
        assert _run(session.confirm_search()) is None

    def test_clear_search(self, session, square):
        session.select_search_result(self._hit(geojson=square))
        session.apply_search_outline()
        session.clear_search()
        assert session.search.selection is None
        assert session.reconciler.preview is None


class TestDrafts:

    def test_add_and_toggle(self, session, square):
        draft = session.add_draft(square, name="Sketch")
        assert session.canvas.get_layer(f"draft:{draft.id}") is not None
        session.toggle_draft(draft.id)
        assert session.canvas.get_layer(f"draft:{draft.id}") is None

    def test_drafts_reload(self, config, remote, square):
        s = create_session(config, remote=remote)
        s.add_draft(square)
        again = create_session(config, remote=remote)
        _run(again.load())
        assert len(again.drafts) == 1

    def test_save_draft_keeps_draft(self, session, square):
        draft = session.add_draft({"type": "Feature", "geometry": square}, name="Sketch")
        result = _run(session.save_draft(draft.id))
        assert result.value.name == "Sketch"
        assert result.value.geometry == square
        assert session.drafts.get_draft(draft.id) is not None

    def test_save_draft_unknown(self, session):
        assert _run(session.save_draft("missing")) is None

    def test_save_draft_without_geometry(self, session):
        draft = session.add_draft({"type": "Circle"})
        with pytest.raises(MalformedInputError):
            _run(session.save_draft(draft.id))


class TestMapState:

    def test_state(self, session):
        session.set_base_layer("hybrid")
        state = session.map_state()
        assert state["base_layer"] == "hybrid"
        assert state["selected_id"] is None
        assert state["pending"] is False
        assert state["view"]["zoom"] == 2
