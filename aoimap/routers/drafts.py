"""Draft AOI API endpoints."""

from dataclasses import replace
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from aoimap.drafts import DraftAOI
from aoimap.errors import MalformedInputError
from aoimap.routers.deps import get_session
from aoimap.routers.features import SaveResponse, _save_to_response
from aoimap.session import AoiSession

router = APIRouter(prefix="/api/drafts", tags=["drafts"])


class CreateDraftRequest(BaseModel):
    geojson: Any
    name: Optional[str] = None


class UpdateDraftRequest(BaseModel):
    geojson: Optional[Any] = None
    name: Optional[str] = None
    visible: Optional[bool] = None


class SaveDraftRequest(BaseModel):
    name: Optional[str] = None


class DraftResponse(BaseModel):
    """Draft response model."""
    id: str
    geojson: Any
    created_at: str
    visible: bool
    name: Optional[str] = None


def _draft_to_response(draft: DraftAOI) -> DraftResponse:
    return DraftResponse(**draft.to_dict())


def _require_draft(session: AoiSession, draft_id: str) -> DraftAOI:
    draft = session.drafts.get_draft(draft_id)
    if draft is None:
        raise HTTPException(status_code=404, detail="Draft not found")
    return draft


@router.get("/", response_model=list[DraftResponse])
async def list_drafts(session: AoiSession = Depends(get_session)):
    """List drafts in creation order."""
    return [_draft_to_response(d) for d in session.drafts.drafts]


@router.post("/", response_model=DraftResponse)
async def create_draft(request: CreateDraftRequest, session: AoiSession = Depends(get_session)):
    """Create a draft. New drafts are always visible."""
    draft = session.add_draft(request.geojson, name=request.name)
    return _draft_to_response(draft)


@router.put("/{draft_id}", response_model=DraftResponse)
async def update_draft(
    draft_id: str,
    request: UpdateDraftRequest,
    session: AoiSession = Depends(get_session),
):
    """Replace fields of an existing draft."""
    draft = _require_draft(session, draft_id)
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    updated = replace(draft, **changes)
    session.update_draft(updated)
    return _draft_to_response(updated)


@router.post("/{draft_id}/toggle", response_model=DraftResponse)
async def toggle_draft(draft_id: str, session: AoiSession = Depends(get_session)):
    """Flip a draft's visibility."""
    _require_draft(session, draft_id)
    session.toggle_draft(draft_id)
    return _draft_to_response(session.drafts.get_draft(draft_id))


@router.delete("/{draft_id}")
async def delete_draft(draft_id: str, session: AoiSession = Depends(get_session)):
    session.remove_draft(draft_id)
    return {"status": "deleted", "draft_id": draft_id}


@router.post("/{draft_id}/save", response_model=SaveResponse)
async def save_draft(
    draft_id: str,
    request: SaveDraftRequest,
    session: AoiSession = Depends(get_session),
):
    """Save a copy of the draft as a feature. The draft is kept."""
    try:
        result = await session.save_draft(draft_id, name=request.name)
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Draft not found")
    return _save_to_response(result)
