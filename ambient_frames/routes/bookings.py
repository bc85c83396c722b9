"""
Booking inquiry routes.
Anyone may submit the booking form; listing and status changes are admin only.
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
import logging

from ambient_frames.database import get_db
from ambient_frames.models import Booking, generate_id, utcnow
from ambient_frames.schemas import BookingCreate, BookingResponse, BookingStatusUpdate, SessionClaims
from ambient_frames.utils.session_auth import require_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])

NO_STORE = {"Cache-Control": "no-store, max-age=0"}


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    response: Response,
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require_session)
):
    """All bookings, newest first."""
    try:
        result = await db.execute(select(Booking).order_by(Booking.created_at.desc()))
        bookings = result.scalars().all()
    except Exception as e:
        logger.error(f"Failed to fetch bookings: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch bookings"}
        )

    response.headers.update(NO_STORE)
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.post("")
async def create_booking(
    booking_in: BookingCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Save a booking inquiry from the public form.
    New bookings always start as `unread`.
    """
    booking = Booking(
        id=generate_id(),
        name=booking_in.name or "Unknown",
        email=booking_in.email,
        phone=booking_in.phone,
        event_type=booking_in.event_type,
        message=booking_in.message,
        status="unread",
        created_at=utcnow(),
    )

    try:
        db.add(booking)
        await db.commit()
        await db.refresh(booking)
    except Exception as e:
        logger.error(f"Failed to save booking: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to save booking"}
        )

    logger.info(f"New booking {booking.id} ({booking.event_type or 'unspecified'})")
    return {"success": True, "booking": BookingResponse.model_validate(booking)}


@router.patch("")
async def update_booking_status(
    update: BookingStatusUpdate,
    db: AsyncSession = Depends(get_db),
    claims: SessionClaims = Depends(require_session)
):
    """
    Change the status of one booking. No other field is touched.

    Raises:
        HTTPException: 404 if the booking does not exist, 500 if the update fails
    """
    try:
        result = await db.execute(select(Booking).where(Booking.id == update.id))
        booking = result.scalar_one_or_none()

        if not booking:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Booking not found", "detail": f"Booking {update.id} does not exist"}
            )

        booking.status = update.status
        await db.commit()
        await db.refresh(booking)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update booking {update.id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to update booking"}
        )

    logger.info(f"Booking {booking.id} marked '{booking.status}' by {claims.username}")
    return {"success": True, "booking": BookingResponse.model_validate(booking)}
