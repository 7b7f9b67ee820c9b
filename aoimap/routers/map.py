"""Map view endpoints: layers, base map, viewport and widget events."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from aoimap.layers.basemaps import BASE_MAPS
from aoimap.routers.deps import get_session
from aoimap.session import AoiSession

router = APIRouter(prefix="/api/map", tags=["map"])


class BaseLayerRequest(BaseModel):
    base_layer: str


class SelectRequest(BaseModel):
    feature_id: Optional[str] = None


class ClickRequest(BaseModel):
    layer_id: str


class DrawRequest(BaseModel):
    """Geometry produced by the draw toolbar."""
    geometry: dict[str, Any]


class ZoomRequest(BaseModel):
    direction: str


@router.get("/")
async def get_map_state(session: AoiSession = Depends(get_session)):
    """Viewport, layers, base layer, selection and staged-geometry flag."""
    return session.map_state()


@router.get("/base-layers")
async def list_base_layers():
    return [
        {"id": b.id, "label": b.label, "url": b.url, "attribution": b.attribution}
        for b in BASE_MAPS.values()
    ]


@router.put("/base-layer")
async def set_base_layer(request: BaseLayerRequest, session: AoiSession = Depends(get_session)):
    try:
        session.set_base_layer(request.base_layer)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"base_layer": request.base_layer}


@router.post("/select")
async def select_feature(request: SelectRequest, session: AoiSession = Depends(get_session)):
    """Select a feature by id; a null id clears the selection."""
    if request.feature_id is not None and session.get_feature(request.feature_id) is None:
        raise HTTPException(status_code=404, detail="Feature not found")
    session.select_feature(request.feature_id)
    return {"selected_id": session.selected_id}


@router.post("/click")
async def click_layer(request: ClickRequest, session: AoiSession = Depends(get_session)):
    """Deliver a layer click from the widget."""
    handled = session.canvas.click(request.layer_id)
    return {"handled": handled, "selected_id": session.selected_id}


@router.post("/draw")
async def shape_drawn(request: DrawRequest, session: AoiSession = Depends(get_session)):
    """Deliver a completed drawing from the widget."""
    session.canvas.draw(request.geometry)
    return {"pending": session.pending_geometry is not None}


@router.post("/zoom")
async def zoom(request: ZoomRequest, session: AoiSession = Depends(get_session)):
    if request.direction == "in":
        level = session.canvas.zoom_in()
    elif request.direction == "out":
        level = session.canvas.zoom_out()
    else:
        raise HTTPException(status_code=400, detail="direction must be 'in' or 'out'")
    return {"zoom": level}


@router.delete("/preview")
async def clear_preview(session: AoiSession = Depends(get_session)):
    """Remove the preview outline and drop any staged geometry."""
    session.reconciler.set_preview(None)
    session.discard_pending()
    return {"status": "cleared"}
