"""Place search and file upload endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from aoimap.errors import MalformedInputError, UnsupportedFormatError
from aoimap.layers.layer import ViewportFocusRequest
from aoimap.routers.deps import get_session
from aoimap.routers.features import SaveResponse, _save_to_response
from aoimap.session import AoiSession

router = APIRouter(prefix="/api/geo", tags=["geo"])


class QueryRequest(BaseModel):
    """Current text of the search box."""
    text: str


class SelectResultRequest(BaseModel):
    """Index into the shown results."""
    index: int


class UploadRequest(BaseModel):
    """Uploaded file; ``content`` is the file's text."""
    filename: str
    content: str


class FocusResponse(BaseModel):
    lat: float
    lon: float
    zoom: Optional[int] = None
    bounding_box: Optional[list[float]] = None


class SearchStateResponse(BaseModel):
    query: str
    searching: bool
    results: list[dict[str, Any]]
    selection: Optional[str] = None


class UploadResponse(BaseModel):
    filename: str
    geometry_type: str
    bounding_box: Optional[list[float]] = None
    focus: Optional[FocusResponse] = None


def _focus_to_response(focus: ViewportFocusRequest) -> FocusResponse:
    return FocusResponse(
        lat=focus.lat,
        lon=focus.lon,
        zoom=focus.zoom,
        bounding_box=list(focus.bounding_box) if focus.bounding_box else None,
    )


def _search_state(session: AoiSession) -> SearchStateResponse:
    search = session.search
    return SearchStateResponse(
        query=search.query,
        searching=search.searching,
        results=[hit.to_dict() for hit in search.visible_results],
        selection=search.selection.display_name if search.selection else None,
    )


# ==================
# Search
# ==================

@router.post("/query", response_model=SearchStateResponse)
async def query_changed(request: QueryRequest, session: AoiSession = Depends(get_session)):
    """Feed a keystroke to the debounced search; results arrive later."""
    session.search.on_query_changed(request.text)
    return _search_state(session)


@router.get("/results", response_model=SearchStateResponse)
async def get_results(session: AoiSession = Depends(get_session)):
    return _search_state(session)


@router.post("/search", response_model=SearchStateResponse)
async def search_now(request: QueryRequest, session: AoiSession = Depends(get_session)):
    """Run a search for ``text`` immediately."""
    session.search.query = request.text
    await session.search.submit()
    return _search_state(session)


@router.post("/select", response_model=FocusResponse)
async def select_result(request: SelectResultRequest, session: AoiSession = Depends(get_session)):
    """Pick one of the shown results and frame the map on it."""
    results = session.search.visible_results
    if not 0 <= request.index < len(results):
        raise HTTPException(status_code=404, detail="No search result at that index")
    focus = session.select_search_result(results[request.index])
    return _focus_to_response(focus)


@router.post("/outline")
async def show_outline(session: AoiSession = Depends(get_session)):
    """Preview the selected result's outline on the map."""
    if not session.apply_search_outline():
        raise HTTPException(status_code=404, detail="Selected result has no outline")
    return {"status": "previewing"}


@router.post("/confirm", response_model=SaveResponse)
async def confirm_selection(session: AoiSession = Depends(get_session)):
    """Save the selected result's outline as a feature."""
    try:
        result = await session.confirm_search()
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="No search result with an outline selected")
    return _save_to_response(result)


@router.delete("/search")
async def clear_search(session: AoiSession = Depends(get_session)):
    session.clear_search()
    return {"status": "cleared"}


# ==================
# Upload
# ==================

@router.post("/upload", response_model=UploadResponse)
async def upload_file(request: UploadRequest, session: AoiSession = Depends(get_session)):
    """Preview an uploaded GeoJSON file and stage it for saving."""
    try:
        candidate = session.upload(request.filename, request.content)
    except UnsupportedFormatError as e:
        raise HTTPException(status_code=415, detail=str(e))
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return UploadResponse(
        filename=candidate.filename,
        geometry_type=candidate.geometry["type"],
        bounding_box=list(candidate.bounding_box) if candidate.bounding_box else None,
        focus=_focus_to_response(candidate.focus) if candidate.focus else None,
    )
