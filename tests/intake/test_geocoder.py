"""Unit tests for the Nominatim geocoder client (no external calls)."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from aoimap.intake.geocoder import GeocodeHit, NominatimGeocoder
from aoimap.layers.geometry import BoundingBox

pytestmark = pytest.mark.unit

NOMINATIM_ITEM = {
    "display_name": "Köln, Nordrhein-Westfalen, Deutschland",
    "lat": "50.938361",
    "lon": "6.959974",
    "boundingbox": ["50.8304399", "51.0849743", "6.7725303", "7.1620714"],
    "geojson": {"type": "Polygon", "coordinates": [[[6.77, 50.83], [7.16, 50.83], [7.16, 51.08], [6.77, 50.83]]]},
}


def _run(coro):
    """Run an async coroutine synchronously on the current event loop."""
    loop = asyncio.get_event_loop()
    return loop.run_until_complete(coro)


@pytest.fixture
def responder(monkeypatch):
    """Install a MockTransport; set ``.handler`` to control the response."""
    state = {"handler": lambda request: httpx.Response(200, json=[NOMINATIM_ITEM]), "requests": []}
    original = httpx.AsyncClient.__init__

    def handle(request):
        state["requests"].append(request)
        return state["handler"](request)

    def patched(self, *args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handle)
        original(self, *args, **kwargs)

    monkeypatch.setattr(httpx.AsyncClient, "__init__", patched)
    return state


@pytest.fixture
def geocoder():
    return NominatimGeocoder("https://nominatim.example.org/search", "AOI-MAP/test", limit=10)


class TestGeocodeHit:

    def test_from_nominatim(self):
        hit = GeocodeHit.from_nominatim(NOMINATIM_ITEM)
        assert hit.lat == pytest.approx(50.938361)
        assert hit.lon == pytest.approx(6.959974)
        assert hit.bounding_box == BoundingBox(50.8304399, 51.0849743, 6.7725303, 7.1620714)
        assert hit.geojson["type"] == "Polygon"

    def test_point_result_without_geojson(self):
        item = {k: v for k, v in NOMINATIM_ITEM.items() if k != "geojson"}
        assert GeocodeHit.from_nominatim(item).geojson is None


class TestNominatimGeocoder:

    def test_search_params(self, geocoder, responder):
        hits = _run(geocoder.search("  Köln "))
        assert len(hits) == 1

        request = responder["requests"][0]
        assert request.url.params["q"] == "Köln"
        assert request.url.params["format"] == "json"
        assert request.url.params["polygon_geojson"] == "1"
        assert request.url.params["limit"] == "10"
        assert request.headers["user-agent"] == "AOI-MAP/test"

    def test_empty_text_makes_no_request(self, geocoder, responder):
        assert _run(geocoder.search("   ")) == []
        assert responder["requests"] == []

    def test_http_error_returns_empty(self, geocoder, responder):
        responder["handler"] = lambda request: httpx.Response(503)
        assert _run(geocoder.search("Köln")) == []

    def test_malformed_items_skipped(self, geocoder, responder):
        responder["handler"] = lambda request: httpx.Response(
            200, json=[{"display_name": "no coords"}, NOMINATIM_ITEM]
        )
        hits = _run(geocoder.search("Köln"))
        assert [h.display_name for h in hits] == [NOMINATIM_ITEM["display_name"]]

    def test_error_object_returns_empty(self, geocoder, responder):
        responder["handler"] = lambda request: httpx.Response(200, json={"error": "Unable to geocode"})
        assert _run(geocoder.search("Köln")) == []

    def test_non_json_body_returns_empty(self, geocoder, responder):
        responder["handler"] = lambda request: httpx.Response(200, text="<html>busy</html>")
        assert _run(geocoder.search("Köln")) == []

    def test_non_object_items_skipped(self, geocoder, responder):
        responder["handler"] = lambda request: httpx.Response(200, json=["oops", NOMINATIM_ITEM])
        assert len(_run(geocoder.search("Köln"))) == 1
