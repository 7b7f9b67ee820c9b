"""Read an uploaded GeoJSON file into a pending save candidate.

Only ``.geojson`` and ``.json`` are parsed. KML, KMZ and shapefiles are
recognised but must be converted to GeoJSON first.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional, Union

from loguru import logger

from aoimap.errors import MalformedInputError, UnsupportedFormatError
from aoimap.layers.geometry import BoundingBox, compute_bounding_box, extract_geometry
from aoimap.layers.layer import ViewportFocusRequest

GEOJSON_SUFFIXES = (".geojson", ".json")
CONVERTIBLE_SUFFIXES = (".kml", ".kmz", ".zip", ".shp")


@dataclass
class UploadCandidate:
    """A parsed upload, staged for preview and an explicit save."""

    filename: str
    geojson: dict
    geometry: dict
    bounding_box: Optional[BoundingBox] = None
    focus: Optional[ViewportFocusRequest] = None


def read_upload(filename: str, content: Union[str, bytes], focus_zoom: int = 12) -> UploadCandidate:
    """Parse an uploaded file.

    Args:
        filename: Original file name; its suffix selects the handling.
        content: Raw file content.
        focus_zoom: Zoom carried by the resulting focus request.

    Returns:
        UploadCandidate with the original geojson, its normalized geometry,
        and a focus request centred on its extent.

    Raises:
        UnsupportedFormatError: For KML/KMZ/shapefile uploads or unknown suffixes.
        MalformedInputError: If the content is not JSON or holds no geometry.
    """
    suffix = PurePath(filename).suffix.lower()

    if suffix in CONVERTIBLE_SUFFIXES:
        raise UnsupportedFormatError(
            "KML and shapefile uploads are not supported. "
            "Convert the file to GeoJSON first."
        )
    if suffix not in GEOJSON_SUFFIXES:
        raise UnsupportedFormatError(
            "Unsupported file type. Please upload a .geojson or .json file containing GeoJSON."
        )

    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise MalformedInputError("Could not parse the uploaded GeoJSON file.") from e

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse GeoJSON upload {filename}: {e}")
        raise MalformedInputError("Could not parse the uploaded GeoJSON file.") from e

    geometry = extract_geometry(parsed)
    if geometry is None:
        raise MalformedInputError(
            "Uploaded file does not contain a valid GeoJSON geometry/feature."
        )

    bbox = compute_bounding_box(parsed)
    focus = ViewportFocusRequest.from_bounding_box(bbox, zoom=focus_zoom) if bbox else None

    logger.info(f"Staged upload {filename} ({geometry['type']})")
    return UploadCandidate(
        filename=filename,
        geojson=parsed,
        geometry=geometry,
        bounding_box=bbox,
        focus=focus,
    )
