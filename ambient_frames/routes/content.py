"""
Portfolio content routes: the gallery and projects documents.
Both are flat JSON arrays rewritten in full on every save.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
import logging

from ambient_frames.schemas import GallerySaveRequest, ProjectsSaveRequest, SessionClaims
from ambient_frames.services.document_store import (
    DocumentStoreError,
    JsonListStore,
    get_gallery_store,
    get_projects_store,
)
from ambient_frames.utils.session_auth import require_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Content"])

NO_STORE = {"Cache-Control": "no-store, max-age=0"}


async def _load(store: JsonListStore, label: str) -> JSONResponse:
    try:
        items = await store.load()
    except DocumentStoreError as e:
        logger.error(f"Failed to load {label}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": f"Failed to load {label}"}
        )
    return JSONResponse(content=items, headers=NO_STORE)


async def _save(store: JsonListStore, items: list, label: str, username: str) -> dict:
    try:
        await store.save(items)
    except DocumentStoreError as e:
        logger.error(f"Failed to save {label}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to save data"}
        )
    logger.info(f"{username} saved {len(items)} {label} item(s)")
    return {"success": True}


@router.get("/gallery")
async def get_gallery(store: JsonListStore = Depends(get_gallery_store)):
    """Gallery items ([] before the first save)."""
    return await _load(store, "gallery")


@router.post("/gallery")
async def save_gallery(
    payload: GallerySaveRequest,
    store: JsonListStore = Depends(get_gallery_store),
    claims: SessionClaims = Depends(require_session)
):
    items = [item.model_dump(by_alias=True, exclude_none=True) for item in payload.images]
    return await _save(store, items, "gallery", claims.username)


@router.get("/projects")
async def get_projects(store: JsonListStore = Depends(get_projects_store)):
    """Project case studies ([] before the first save)."""
    return await _load(store, "projects")


@router.post("/projects")
async def save_projects(
    payload: ProjectsSaveRequest,
    store: JsonListStore = Depends(get_projects_store),
    claims: SessionClaims = Depends(require_session)
):
    items = [item.model_dump(by_alias=True) for item in payload.projects]
    return await _save(store, items, "projects", claims.username)
