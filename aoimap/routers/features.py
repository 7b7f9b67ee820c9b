"""Saved AOI feature API endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from aoimap.errors import MalformedInputError
from aoimap.features.models import AOIFeature, FeatureDraft, StoreResult
from aoimap.features.export import export_feature_collection
from aoimap.layers.geometry import geometry_type
from aoimap.routers.deps import get_session
from aoimap.session import AoiSession

router = APIRouter(prefix="/api/aoi", tags=["aoi"])


# ==================
# Request/Response Models
# ==================

class SaveFeatureRequest(BaseModel):
    """Request to save a feature."""
    name: Optional[str] = None
    geometry: dict[str, Any]
    properties: dict[str, Any] = {}


class SavePendingRequest(BaseModel):
    """Name for the staged (drawn or uploaded) geometry."""
    name: Optional[str] = None


class UpdateFeatureRequest(BaseModel):
    """Request to update a feature."""
    name: Optional[str] = None
    geometry: Optional[dict[str, Any]] = None
    properties: Optional[dict[str, Any]] = None


class FeatureResponse(BaseModel):
    """Feature response model."""
    id: str
    name: str
    geometry: dict[str, Any]
    geometry_type: str
    properties: dict[str, Any]
    created_at: str
    updated_at: str
    local_only: bool


class SaveResponse(BaseModel):
    """Saved feature plus the store that accepted it."""
    feature: FeatureResponse
    source: str


def _feature_to_response(feature: AOIFeature) -> FeatureResponse:
    return FeatureResponse(
        id=feature.id,
        name=feature.name,
        geometry=feature.geometry,
        geometry_type=geometry_type(feature.geometry),
        properties=feature.properties,
        created_at=feature.created_at.isoformat(),
        updated_at=feature.updated_at.isoformat(),
        local_only=feature.is_local,
    )


def _save_to_response(result: StoreResult[AOIFeature]) -> SaveResponse:
    return SaveResponse(feature=_feature_to_response(result.value), source=result.source.value)


# ==================
# Feature Endpoints
# ==================

@router.get("/", response_model=list[FeatureResponse])
async def list_features(refresh: bool = False, session: AoiSession = Depends(get_session)):
    """List saved features, optionally re-reading the stores first."""
    if refresh:
        await session.refresh()
    return [_feature_to_response(f) for f in session.features]


@router.get("/export")
async def export_features(session: AoiSession = Depends(get_session)):
    """All saved features as a GeoJSON FeatureCollection."""
    return export_feature_collection(session.features)


@router.post("/", response_model=SaveResponse)
async def save_feature(request: SaveFeatureRequest, session: AoiSession = Depends(get_session)):
    """Save a new feature."""
    try:
        result = await session.save(FeatureDraft(
            geometry=request.geometry,
            name=request.name,
            properties=request.properties,
        ))
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _save_to_response(result)


@router.post("/pending", response_model=SaveResponse)
async def save_pending(request: SavePendingRequest, session: AoiSession = Depends(get_session)):
    """Save the geometry staged by a draw or upload."""
    try:
        result = await session.save_pending(request.name)
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Nothing staged for saving")
    return _save_to_response(result)


@router.delete("/pending")
async def discard_pending(session: AoiSession = Depends(get_session)):
    """Drop the staged geometry without saving."""
    session.discard_pending()
    return {"status": "discarded"}


@router.get("/{feature_id}", response_model=FeatureResponse)
async def get_feature(feature_id: str, session: AoiSession = Depends(get_session)):
    """Get a specific feature."""
    feature = session.get_feature(feature_id)
    if not feature:
        raise HTTPException(status_code=404, detail="Feature not found")
    return _feature_to_response(feature)


@router.patch("/{feature_id}", response_model=FeatureResponse)
async def update_feature(
    feature_id: str,
    request: UpdateFeatureRequest,
    session: AoiSession = Depends(get_session),
):
    """Update a feature's name, geometry or properties."""
    updates = request.model_dump(exclude_unset=True, exclude_none=True)
    try:
        feature = await session.update_feature(feature_id, updates)
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not feature:
        raise HTTPException(status_code=404, detail="Feature not found")
    return _feature_to_response(feature)


@router.delete("/{feature_id}")
async def delete_feature(feature_id: str, session: AoiSession = Depends(get_session)):
    """Delete a feature; ``confirmed`` is False if only the local cache took it."""
    confirmed = await session.delete_feature(feature_id)
    return {"status": "deleted", "feature_id": feature_id, "confirmed": confirmed}
