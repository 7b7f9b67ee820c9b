"""Catalogue of base tile layers the map can switch between."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BaseMap:
    """A tile source for the map background."""

    id: str
    label: str
    url: str
    attribution: str
    subdomains: tuple[str, ...] = ()
    max_zoom: int = 18


_GOOGLE_SUBDOMAINS = ("mt0", "mt1", "mt2", "mt3")

BASE_MAPS: dict[str, BaseMap] = {
    m.id: m
    for m in (
        BaseMap(
            "streets", "Streets",
            "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
            "© OpenStreetMap contributors",
            ("a", "b", "c"),
        ),
        BaseMap(
            "satellite", "Satellite",
            "https://mt1.google.com/vt/lyrs=s&x={x}&y={y}&z={z}",
            "© Google",
            _GOOGLE_SUBDOMAINS,
        ),
        BaseMap(
            "hybrid", "Hybrid",
            "https://mt1.google.com/vt/lyrs=y&x={x}&y={y}&z={z}",
            "© Google",
            _GOOGLE_SUBDOMAINS,
        ),
        BaseMap(
            "terrain", "Terrain",
            "https://mt1.google.com/vt/lyrs=p&x={x}&y={y}&z={z}",
            "© Google",
            _GOOGLE_SUBDOMAINS,
        ),
        BaseMap(
            "dark", "Dark Mode",
            "https://tiles.stadiamaps.com/tiles/alidade_dark/{z}/{x}/{y}.png",
            "© Stadia Maps © OpenStreetMap contributors",
        ),
        BaseMap(
            "light", "Light Mode",
            "https://tiles.stadiamaps.com/tiles/alidade_smooth/{z}/{x}/{y}.png",
            "© Stadia Maps © OpenStreetMap contributors",
        ),
        BaseMap(
            "outdoors", "Outdoors",
            "https://tile.opentopomap.org/{z}/{x}/{y}.png",
            "© OpenTopoMap © OpenStreetMap contributors",
        ),
    )
}


def get_base_map(base_id: str) -> BaseMap:
    """Look up a base map by id.

    Raises:
        ValueError: If the id is not in the catalogue.
    """
    try:
        return BASE_MAPS[base_id]
    except KeyError:
        raise ValueError(
            f"Unknown base layer: {base_id}. Must be one of: {list(BASE_MAPS)}"
        ) from None
