"""
Event and event-photo routes for the admin dashboard.
Photo originals go to object storage; the database keeps their URL and key.
"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional
import logging
import secrets

from ambient_frames.database import get_db
from ambient_frames.models import Event, Photo, generate_id, utcnow
from ambient_frames.schemas import EventCreate, EventResponse, PhotoResponse, SessionClaims
from ambient_frames.services.object_storage import (
    StorageNotConfiguredError,
    StorageUploadError,
    event_photo_key,
    put_object,
)
from ambient_frames.utils.session_auth import require_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Events"])


def make_event_slug(name: str) -> str:
    """Lower-cased name with spaces as dashes plus a 4-character random suffix."""
    return f"{name.lower().replace(' ', '-')}-{secrets.token_urlsafe(3)}"


@router.get("/events")
async def list_events(
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require_session)
):
    """All events, newest first."""
    try:
        result = await db.execute(select(Event).order_by(Event.created_at.desc()))
        events = result.scalars().all()
    except Exception as e:
        logger.error(f"Failed to fetch events: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch events"}
        )

    return {"events": [EventResponse.model_validate(event) for event in events]}


@router.post("/events")
async def create_event(
    event_in: EventCreate,
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require_session)
):
    """Create an event with a generated unique slug."""
    event = Event(
        id=generate_id(),
        name=event_in.name,
        slug=make_event_slug(event_in.name),
        date=event_in.date,
        location=event_in.location,
        cover_image=event_in.cover_image,
        created_at=utcnow(),
    )

    try:
        db.add(event)
        await db.commit()
        await db.refresh(event)
    except Exception as e:
        logger.error(f"Failed to create event: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to create event"}
        )

    logger.info(f"Event created: {event.slug}")
    return {"success": True, "event": EventResponse.model_validate(event)}


@router.get("/events/{event_id}/photos")
async def list_event_photos(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require_session)
):
    """Photos uploaded for one event, newest first. Unknown events have no photos."""
    try:
        result = await db.execute(
            select(Photo).where(Photo.event_id == event_id).order_by(Photo.uploaded_at.desc())
        )
        photos = result.scalars().all()
    except Exception as e:
        logger.error(f"Failed to fetch photos for event {event_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch photos"}
        )

    return {"photos": [PhotoResponse.model_validate(photo) for photo in photos]}


@router.post("/photos/upload")
async def upload_event_photo(
    file: Optional[UploadFile] = File(None),
    event_id: Optional[str] = Form(None, alias="eventId"),
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require_session)
):
    """
    Store one photo original for an event and record it.

    Raises:
        HTTPException: 400 on missing file/eventId, 404 for an unknown event,
            500 if storage or the insert fails
    """
    if file is None or not event_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Missing file or eventId"}
        )

    result = await db.execute(select(Event).where(Event.id == event_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Event not found"}
        )

    filename = file.filename or "photo"
    key = event_photo_key(event_id, filename)
    content = await file.read()

    try:
        url = await put_object(key, content, file.content_type)
    except StorageNotConfiguredError as e:
        logger.error(f"Object storage unavailable: {str(e)}")
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
        event_id=event_id,
        url=url,
        storage_key=key,
        original_name=filename,
        uploaded_at=utcnow(),
    )

    try:
        db.add(photo)
        await db.commit()
        await db.refresh(photo)
    except Exception as e:
        # The object is already in the bucket at this point and stays there
        logger.error(f"Failed to record photo {key}: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Upload failed"}
        )

    return {"success": True, "photo": PhotoResponse.model_validate(photo)}
