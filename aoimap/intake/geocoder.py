"""Place-name search against Nominatim (OpenStreetMap).

Nominatim requires a User-Agent identifying the client and allows about one
request per second; the search controller's debounce keeps us under that.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
from loguru import logger

from aoimap.layers.geometry import BoundingBox


@dataclass
class GeocodeHit:
    """One geocoder result, in provider order."""

    display_name: str
    lat: float
    lon: float
    bounding_box: Optional[BoundingBox] = None
    geojson: Optional[dict] = None

    @classmethod
    def from_nominatim(cls, item: dict) -> "GeocodeHit":
        geojson = item.get("geojson")
        return cls(
            display_name=item.get("display_name") or item.get("name") or "",
            lat=float(item["lat"]),
            lon=float(item["lon"]),
            bounding_box=BoundingBox.from_sequence(item.get("boundingbox")),
            geojson=geojson if isinstance(geojson, dict) else None,
        )

    def to_dict(self) -> dict:
        return {
            "display_name": self.display_name,
            "lat": self.lat,
            "lon": self.lon,
            "bounding_box": list(self.bounding_box) if self.bounding_box else None,
            "geojson": self.geojson,
        }


class NominatimGeocoder:
    """Async client for the Nominatim search endpoint."""

    def __init__(self, url: str, user_agent: str, limit: int = 10, timeout: float = 10.0):
        self.url = url
        self.user_agent = user_agent
        self.limit = limit
        self.timeout = timeout

    async def search(self, text: str) -> list[GeocodeHit]:
        """Look up ``text``.

        Returns:
            Hits in provider order; an empty list if the request fails.
        """
        query = text.strip()
        if not query:
            return []

        async with httpx.AsyncClient() as client:
            try:
                resp = await client.get(
                    self.url,
                    params={
                        "q": query,
                        "format": "json",
                        "polygon_geojson": 1,
                        "addressdetails": 1,
                        "limit": self.limit,
                    },
                    headers={"User-Agent": self.user_agent},
                    timeout=self.timeout,
                )
                resp.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning(f"Nominatim request failed: {e}")
                return []

        try:
            items = resp.json()
        except ValueError as e:
            logger.warning(f"Nominatim returned a non-JSON body: {e}")
            return []
        if not isinstance(items, list):
            logger.warning(f"Nominatim returned an error: {items}")
            return []

        hits = []
        for item in items:
            try:
                hits.append(GeocodeHit.from_nominatim(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed geocoder result: {e}")
        return hits
