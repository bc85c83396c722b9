"""
Public "find your photos" routes.
Visitors upload a selfie scan and search event photos for their face.
"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from ambient_frames.database import get_db
from ambient_frames.models import Photo, generate_id, utcnow
from ambient_frames.schemas import PhotoResponse
from ambient_frames.services.face_search import MatchEngine, get_match_engine, DEFAULT_MATCH_LIMIT
from ambient_frames.services.object_storage import (
    StorageNotConfiguredError,
    StorageUploadError,
    put_object,
    scan_key,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scan", tags=["Face search"])


@router.post("/upload")
async def upload_scan(
    file: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db)
):
    """Store a scan image and record it as a photo without an event."""
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "No file provided"}
        )

    filename = file.filename or "scan"
    key = scan_key(filename)

    try:
        url = await put_object(key, await file.read(), file.content_type)
    except StorageNotConfiguredError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to connect to storage"}
        )
    except StorageUploadError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Upload failed"}
        )

    photo = Photo(
        id=generate_id(),
        event_id=None,
        url=url,
        storage_key=key,
        original_name=name or filename,
        uploaded_at=utcnow(),
    )

    try:
        db.add(photo)
        await db.commit()
        await db.refresh(photo)
    except Exception as e:
        logger.error(f"Failed to record scan {key}: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Upload failed"}
        )

    return {"success": True, "photo": PhotoResponse.model_validate(photo)}


@router.post("/search")
async def search_faces(
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    engine: MatchEngine = Depends(get_match_engine)
):
    """Search photos for the face in the optional probe image."""
    probe = await file.read() if file is not None else None

    try:
        photos = await engine.find_matches(db, probe, limit=DEFAULT_MATCH_LIMIT)
    except Exception as e:
        logger.error(f"Face search failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Search failed"}
        )

    return {
        "success": True,
        "found": len(photos) > 0,
        "photos": [PhotoResponse.model_validate(photo) for photo in photos],
    }
