"""GeoJSON export of saved features."""

from typing import Iterable

from aoimap.features.models import AOIFeature


def feature_to_geojson(feature: AOIFeature) -> dict:
    return {
        "type": "Feature",
        "id": feature.id,
        "geometry": feature.geometry,
        "properties": {
            **feature.properties,
            "name": feature.name,
            "created_at": feature.created_at.isoformat(),
            "updated_at": feature.updated_at.isoformat(),
        },
    }


def export_feature_collection(features: Iterable[AOIFeature]) -> dict:
    """Wrap ``features`` in a FeatureCollection, keeping their order."""
    return {
        "type": "FeatureCollection",
        "features": [feature_to_geojson(f) for f in features],
    }
